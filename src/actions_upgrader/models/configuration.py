"""Configuration models with Pydantic validation.

Defines the configuration for the GitHub API, the git commit identity,
repository acquisition, and run behavior. Sensitive values use SecretStr
and the mandatory values fall back to environment variables when they are
not provided explicitly.
"""

import os
import pathlib
import typing

import pydantic


def _from_environment(
    data: typing.Any, mapping: dict[str, str]
) -> typing.Any:
    """Fill missing keys in ``data`` from the environment variables named
    in ``mapping``. Blank environment values are ignored.

    """
    if isinstance(data, dict):
        for key, variable in mapping.items():
            if data.get(key):
                continue
            value = os.environ.get(variable, '').strip()
            if value:
                data[key] = value
    return data


class GitHubConfiguration(pydantic.BaseModel):
    """GitHub API configuration.

    Supports both GitHub.com and GitHub Enterprise with API token
    authentication. ``organization`` is the organization name, or the user
    name when ``user`` is set.
    """

    api_key: pydantic.SecretStr
    hostname: str = pydantic.Field(default='github.com')
    organization: str
    user: bool = False
    teams: list[str] = pydantic.Field(default_factory=list)
    per_page: int = pydantic.Field(default=100, ge=1, le=100)
    max_retries: int = pydantic.Field(default=2, ge=0)
    retry_backoff: float = pydantic.Field(default=1.0, ge=0)
    timeout: float = 30.0

    @pydantic.model_validator(mode='before')
    @classmethod
    def _set_values_from_env(cls, data: typing.Any) -> typing.Any:
        return _from_environment(
            data,
            {'api_key': 'GITHUB_TOKEN', 'organization': 'GITHUB_ORGNAME'},
        )

    @pydantic.field_validator('organization')
    @classmethod
    def _validate_organization(cls, value: str) -> str:
        value = value.strip()
        if not value or '/' in value:
            raise ValueError(f'Invalid organization name: {value!r}')
        return value

    @property
    def base_url(self) -> str:
        if self.hostname == 'github.com':
            return 'https://api.github.com'
        return f'https://{self.hostname}/api/v3'

    @property
    def entity(self) -> str:
        """The API path prefix addressing the organization or user."""
        return f'{"users" if self.user else "orgs"}/{self.organization}'


class GitConfiguration(pydantic.BaseModel):
    """Git configuration for commits made in cloned repositories."""

    user_name: str
    user_email: str

    @pydantic.model_validator(mode='before')
    @classmethod
    def _set_values_from_env(cls, data: typing.Any) -> typing.Any:
        return _from_environment(
            data, {'user_name': 'GIT_USERNAME', 'user_email': 'GIT_USEREMAIL'}
        )


class AcquisitionConfiguration(pydantic.BaseModel):
    """Repository filtering and clone scheduling.

    The clone watchdog ticks every ``clone_tick_interval`` seconds, logs the
    repositories still cloning every ``clone_log_ticks`` ticks and kills a
    clone once ``clone_kill_ticks`` ticks have passed since it was spawned.
    """

    exclude_repositories: set[str] = pydantic.Field(default_factory=set)
    exclude_file: pathlib.Path = pathlib.Path('excluderepos.txt')
    max_size_kb: int | None = None
    no_forks: bool = False
    parallelism: int | None = pydantic.Field(default=None, ge=1)
    repositories_file: pathlib.Path = pathlib.Path('repos.txt')
    clone_tick_interval: float = pydantic.Field(default=0.1, gt=0)
    clone_log_ticks: int = pydantic.Field(default=100, ge=1)
    clone_kill_ticks: int = pydantic.Field(default=20000, ge=1)


class Configuration(pydantic.BaseModel):
    """Main application configuration.

    Root configuration object combining the GitHub, git and acquisition
    settings with the global switches for a run.
    """

    acquisition: AcquisitionConfiguration = pydantic.Field(
        default_factory=AcquisitionConfiguration
    )
    approve: bool = False
    branch_prefix: str = 'actionsupgrader-'
    dry_run: bool = False
    git: GitConfiguration
    github: GitHubConfiguration
    scratch_dir: pathlib.Path = pathlib.Path('/tmp/actionsupgrader_repos')  # noqa: S108
    skip_clone: bool = False
    split_pull_requests: bool = False
    tags_file: pathlib.Path = pathlib.Path('tags.txt')

    @pydantic.model_validator(mode='before')
    @classmethod
    def _default_sections(cls, data: typing.Any) -> typing.Any:
        # Sections may come entirely from the environment
        if isinstance(data, dict):
            data.setdefault('git', {})
            data.setdefault('github', {})
        return data
