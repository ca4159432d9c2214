"""Exceptions raised by actions-upgrader."""


class ActionsUpgraderError(Exception):
    """Base exception for all actions-upgrader errors."""


class DirectoryServiceError(ActionsUpgraderError):
    """A GitHub API request failed.

    Carries the HTTP status code (None for transport failures) and the
    response body so callers can log what GitHub reported.
    """

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int | None = None,
        body: str = '',
    ) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(
            f'{method} {url} failed with status {status_code}: {body}'
        )


class GitHubNotFoundError(DirectoryServiceError):
    """The requested GitHub resource does not exist."""


class GitCommandError(ActionsUpgraderError):
    """A git command exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f'git {" ".join(command)} exited with {returncode}: {stderr}'
        )


class NoRepositoriesError(ActionsUpgraderError):
    """No repositories remain to process, the run can not continue."""


class UnsupportedOperationError(ActionsUpgraderError):
    """The requested mode of operation is not supported."""
