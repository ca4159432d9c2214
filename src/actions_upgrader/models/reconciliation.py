"""Reconciliation outcome models."""

import enum
import pathlib

import pydantic


class ReconciliationState(enum.StrEnum):
    """Terminal state of a repository after reconciliation."""

    skipped = 'skipped'
    created = 'created'
    updated = 'updated'


class PendingPullRequest(pydantic.BaseModel):
    """A push plus pull request creation or update waiting for approval.

    ``number`` and ``existing_title`` are set when an open pull request
    from an earlier run is updated instead of creating a new one.
    """

    repository_path: pathlib.Path
    owner: str
    repo_name: str
    remote_branch: str
    default_branch: str
    title: str
    body: str
    number: int | None = None
    existing_title: str | None = None

    @property
    def state(self) -> ReconciliationState:
        if self.number is None:
            return ReconciliationState.created
        return ReconciliationState.updated


class RepositoryOutcome(pydantic.BaseModel):
    """What reconciliation decided for one repository.

    ``error`` is set when a git command or the pull request listing
    failed; the repository is then reported as skipped.
    """

    repo_name: str
    state: ReconciliationState
    patched: bool
    pull_request_number: int | None = None
    error: str | None = None


class ReconciliationResult(pydantic.BaseModel):
    """Result of a reconciliation run.

    ``pushed`` maps the index of every update in the reconciled list to
    whether it was committed for push. ``executed`` is True when the
    pending pushes and pull request calls were approved and carried out.
    """

    outcomes: list[RepositoryOutcome] = pydantic.Field(default_factory=list)
    pending: list[PendingPullRequest] = pydantic.Field(default_factory=list)
    pushed: dict[int, bool] = pydantic.Field(default_factory=dict)
    executed: bool = False

    @property
    def success(self) -> bool:
        """False when any workflow file could not be fully patched or a
        repository failed.

        """
        return all(
            outcome.patched and outcome.error is None
            for outcome in self.outcomes
        )

    def count(self, state: ReconciliationState) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == state)
