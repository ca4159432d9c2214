"""GitHub REST API client for repositories, tags and pull requests."""

import logging
import pathlib
import typing

import async_lru
import httpx
import pydantic

from actions_upgrader import errors, models
from actions_upgrader.clients import http

LOGGER = logging.getLogger(__name__)

ModelType = typing.TypeVar('ModelType', bound=pydantic.BaseModel)


class GitHub(http.BaseURLHTTPClient):
    """GitHub API client.

    List calls follow the ``Link: rel="next"`` pagination cursor. When a
    page fails, the failure is logged with the response body and the
    remaining pages of that resource are abandoned; whatever was fetched
    so far is returned.
    """

    def __init__(
        self,
        config: models.GitHubConfiguration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=config.base_url,
            headers={
                'Accept': 'application/vnd.github+json',
                'Authorization': (
                    f'Bearer {config.api_key.get_secret_value()}'
                ),
                'X-GitHub-Api-Version': '2022-11-28',
            },
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
            transport=transport,
        )
        self.configuration = config

    async def get_repositories(
        self, repositories_file: pathlib.Path | None = None
    ) -> list[models.GitHubRepository]:
        """Return the repositories of the configured organization or user.

        When ``repositories_file`` exists, only the repositories named in
        it (one per line) are looked up.

        """
        if repositories_file is not None and repositories_file.exists():
            return await self._get_named_repositories(repositories_file)
        return await self._get_paginated(
            f'{self.configuration.entity}/repos',
            models.GitHubRepository,
            'repositories',
        )

    async def get_team_repositories(
        self, teams: list[str]
    ) -> list[models.GitHubRepository]:
        """Return the repositories the given teams can write to.

        Repositories with the ``read`` role are dropped and repositories
        shared by several teams are returned once.

        """
        repositories: dict[str, models.GitHubRepository] = {}
        for team in teams:
            for repository in await self._get_paginated(
                f'orgs/{self.configuration.organization}/teams/{team}/repos',
                models.GitHubRepository,
                f'team {team} repositories',
            ):
                if repository.role_name == 'read':
                    continue
                repositories.setdefault(repository.clone_url, repository)
        LOGGER.info('Got team repositories: %i', len(repositories))
        return list(repositories.values())

    @async_lru.alru_cache(maxsize=4096)
    async def get_tags(self, owner_repo: str) -> list[models.Tag]:
        """Return the tags of an action repository."""
        tags = await self._get_paginated(
            f'repos/{owner_repo}/tags', models.GitHubTag, f'{owner_repo} tags'
        )
        return [
            models.Tag(owner_repo=owner_repo, name=tag.name) for tag in tags
        ]

    async def get_open_pull_requests(
        self, owner: str, repository: str
    ) -> list[models.GitHubPullRequest]:
        pull_requests = await self._get_paginated(
            f'repos/{owner}/{repository}/pulls',
            models.GitHubPullRequest,
            f'{owner}/{repository} pull requests',
        )
        for pull_request in pull_requests:
            LOGGER.debug(
                'PR #%i: title "%s", head (from) %s, base (to) %s',
                pull_request.number,
                pull_request.title,
                pull_request.head.ref,
                pull_request.base.ref,
            )
        return pull_requests

    async def create_pull_request(
        self,
        owner: str,
        repository: str,
        payload: models.GitHubPullRequestPayload,
    ) -> models.GitHubPullRequest:
        response = await self.request(
            'POST',
            f'repos/{owner}/{repository}/pulls',
            json=payload.model_dump(),
        )
        return models.GitHubPullRequest.model_validate(response.json())

    async def update_pull_request(
        self,
        owner: str,
        repository: str,
        number: int,
        payload: models.GitHubPullRequestPayload,
    ) -> models.GitHubPullRequest:
        response = await self.request(
            'PATCH',
            f'repos/{owner}/{repository}/pulls/{number}',
            json=payload.model_dump(),
        )
        return models.GitHubPullRequest.model_validate(response.json())

    async def _get_named_repositories(
        self, repositories_file: pathlib.Path
    ) -> list[models.GitHubRepository]:
        LOGGER.info('Using repository list from %s', repositories_file)
        repositories: list[models.GitHubRepository] = []
        for name in repositories_file.read_text(encoding='utf-8').split():
            url = f'repos/{self.configuration.organization}/{name}'
            LOGGER.debug('Getting repository %s', url)
            try:
                response = await self.request('GET', url)
                repositories.append(
                    models.GitHubRepository.model_validate(response.json())
                )
            except errors.DirectoryServiceError as exc:
                LOGGER.warning(
                    'Ignoring repository %s: %s (%s)',
                    name,
                    exc.status_code,
                    exc.body,
                )
            except pydantic.ValidationError as exc:
                LOGGER.warning('Ignoring repository %s: %s', name, exc)
        return repositories

    async def _get_paginated(
        self, url: str, model: type[ModelType], resource: str
    ) -> list[ModelType]:
        adapter = pydantic.TypeAdapter(list[model])
        results: list[ModelType] = []
        next_url: str | None = url
        params: dict[str, int] | None = {
            'per_page': self.configuration.per_page
        }
        while next_url:
            LOGGER.debug('Getting %s: %s', resource, next_url)
            try:
                response = await self.request('GET', next_url, params=params)
                results.extend(adapter.validate_python(response.json()))
            except errors.DirectoryServiceError as exc:
                LOGGER.error(
                    'Failed to get %s from %s (%s): %s',
                    resource,
                    exc.url,
                    exc.status_code,
                    exc.body,
                )
                break
            except (ValueError, pydantic.ValidationError) as exc:
                LOGGER.error(
                    'Failed to parse %s from %s: %s', resource, next_url, exc
                )
                break
            next_url = response.links.get('next', {}).get('url')
            params = None
        LOGGER.debug('Got %s: %i', resource, len(results))
        return results
