"""GitHub API response and request models.

Only the fields used by actions-upgrader are declared; unknown fields in
API payloads are ignored.
"""

import pydantic


class GitHubRepository(pydantic.BaseModel):
    """A repository as returned by the repository and team listings.

    ``size`` is reported by GitHub in kilobytes. ``role_name`` is only
    present in team repository listings.
    """

    name: str
    clone_url: str
    archived: bool = False
    fork: bool = False
    size: int = 0
    role_name: str | None = None
    default_branch: str | None = None

    @pydantic.field_validator('clone_url')
    @classmethod
    def _strip_git_suffix(cls, value: str) -> str:
        return value.removesuffix('.git')


class GitHubTag(pydantic.BaseModel):
    """A tag of a repository, as returned by the tags listing."""

    name: str


class Tag(pydantic.BaseModel):
    """A tag of an action repository, keyed by its owner/repo coordinate."""

    model_config = pydantic.ConfigDict(frozen=True)

    owner_repo: str
    name: str


class GitHubPullRequestRef(pydantic.BaseModel):
    """The head or base reference of a pull request."""

    ref: str


class GitHubPullRequest(pydantic.BaseModel):
    """An open pull request as reported by the pull request listing."""

    number: int
    title: str
    body: str | None = None
    head: GitHubPullRequestRef
    base: GitHubPullRequestRef


class GitHubPullRequestPayload(pydantic.BaseModel):
    """Request body used to create or update a pull request."""

    title: str
    body: str
    head: str
    base: str
