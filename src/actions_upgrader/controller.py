"""Main automation controller for upgrading actions across repositories.

The controller runs the pipeline of a run: discovering and cloning the
repositories, scanning their workflows, resolving the newest tags,
reconciling pull requests, and reporting what was done.
"""

import asyncio
import datetime
import logging
import pathlib

from actions_upgrader import (
    acquisition,
    clients,
    errors,
    mixins,
    models,
    reconciler,
    scanner,
    statistics,
    tracker,
    versions,
)

LOGGER = logging.getLogger(__name__)

TAG_FETCH_CONCURRENCY = 8


def load_tags_file(path: pathlib.Path) -> list[models.Tag]:
    """Read ``owner/repo tag`` lines from a tags file."""
    tags: list[models.Tag] = []
    for line in path.read_text(encoding='utf-8').splitlines():
        parts = line.split()
        if len(parts) != 2:
            if line.strip():
                LOGGER.warning('Ignoring malformed tags line: %r', line)
            continue
        tags.append(models.Tag(owner_repo=parts[0], name=parts[1]))
    return tags


class Automation(mixins.LoggerMixin):
    """Runs one upgrade pass over every repository of the organization."""

    def __init__(
        self,
        configuration: models.Configuration,
        verbose: bool = False,
        github: clients.GitHub | None = None,
    ) -> None:
        super().__init__(verbose)
        self.configuration = configuration
        self.tracker = tracker.Tracker()
        self.github = github or clients.GitHub(configuration.github)
        self.acquisition = acquisition.Acquisition(
            configuration, self.tracker, verbose
        )
        self.reconciler = reconciler.Reconciler(
            configuration, self.github, self.tracker, verbose
        )

    async def run(self, now: datetime.datetime | None = None) -> bool:
        """Execute the run.

        Returns:
            False if any workflow file could not be fully patched or a
            repository failed, True otherwise

        Raises:
            errors.NoRepositoriesError: If there are no repositories to
                process
            errors.UnsupportedOperationError: If one pull request per
                action was requested

        """
        if self.configuration.split_pull_requests:
            raise errors.UnsupportedOperationError(
                'Non-combined pull requests are not supported'
            )
        try:
            if self.configuration.skip_clone:
                self.logger.info(
                    'Using existing repositories in %s',
                    self.configuration.scratch_dir,
                )
            else:
                repositories = await self._get_repositories()
                await self.acquisition.acquire(repositories)

            if not self.configuration.scratch_dir.is_dir():
                raise errors.NoRepositoriesError(
                    f'{self.configuration.scratch_dir} does not exist'
                )
            references = scanner.scan(self.configuration.scratch_dir)
            tags = await self._get_tags(references)
            updates = versions.resolve_updates(references, tags)
            self.logger.info('Steps to update: %i', len(updates))
            self.tracker.incr('steps_found', len(references))
            self.tracker.incr('steps_to_update', len(updates))

            result = await self.reconciler.reconcile(updates, now)
        finally:
            await self.github.aclose()

        for line in statistics.format_table(updates):
            self.logger.info('%s', line)
        self.tracker.log_summary()
        return result.success

    async def _get_repositories(self) -> list[models.GitHubRepository]:
        """Return the repositories of the configured teams, or of the
        organization or user.

        Raises:
            errors.NoRepositoriesError: If none were found

        """
        if self.configuration.github.teams:
            repositories = await self.github.get_team_repositories(
                self.configuration.github.teams
            )
        else:
            repositories = await self.github.get_repositories(
                self.configuration.acquisition.repositories_file
            )
        if not repositories:
            raise errors.NoRepositoriesError(
                f'No repositories found for {self.configuration.github.entity}'
            )
        self.logger.info('Found %i repositories', len(repositories))
        return repositories

    async def _get_tags(
        self, references: list[models.ActionReference]
    ) -> list[models.Tag]:
        """Return the tags of every action coordinate in use.

        An existing tags file replaces the API lookups.

        """
        tags_file = self.configuration.tags_file
        if tags_file.exists():
            self.logger.info('Using cached tags from %s', tags_file)
            return load_tags_file(tags_file)

        coordinates = sorted(
            {
                reference.owner_repo
                for reference in references
                if not versions.is_digest(reference.old_version)
            }
        )
        self.logger.info('Action repositories: %i', len(coordinates))
        semaphore = asyncio.Semaphore(TAG_FETCH_CONCURRENCY)

        async def get_tags(owner_repo: str) -> list[models.Tag]:
            async with semaphore:
                return await self.github.get_tags(owner_repo)

        tags = [
            tag
            for result in await asyncio.gather(
                *[get_tags(coordinate) for coordinate in coordinates]
            )
            for tag in result
        ]
        self.logger.info('Tags: %i', len(tags))
        return tags
