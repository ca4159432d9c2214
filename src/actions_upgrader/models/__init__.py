from .acquisition import CloneState, CloneTask
from .configuration import (
    AcquisitionConfiguration,
    Configuration,
    GitConfiguration,
    GitHubConfiguration,
)
from .github import (
    GitHubPullRequest,
    GitHubPullRequestPayload,
    GitHubPullRequestRef,
    GitHubRepository,
    GitHubTag,
    Tag,
)
from .reconciliation import (
    PendingPullRequest,
    ReconciliationResult,
    ReconciliationState,
    RepositoryOutcome,
)
from .workflow import ActionReference, ChangeSet, ResolvedUpdate

__all__ = [
    'AcquisitionConfiguration',
    'ActionReference',
    'ChangeSet',
    'CloneState',
    'CloneTask',
    'Configuration',
    'GitConfiguration',
    'GitHubConfiguration',
    'GitHubPullRequest',
    'GitHubPullRequestPayload',
    'GitHubPullRequestRef',
    'GitHubRepository',
    'GitHubTag',
    'PendingPullRequest',
    'ReconciliationResult',
    'ReconciliationState',
    'RepositoryOutcome',
    'ResolvedUpdate',
    'Tag',
]
