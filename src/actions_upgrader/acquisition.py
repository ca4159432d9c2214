"""Repository acquisition: filtering and cloning with bounded parallelism.

Clones run as detached ``git clone`` processes. A semaphore bounds how
many run at once and each slot is released when its process exits. A
watchdog task ticks at a fixed interval and periodically logs the clones
still running. A clone running for more than a much larger number of ticks
since it was spawned is killed together with its child processes.
"""

import asyncio
import contextlib
import os
import pathlib
import shutil
import signal

from actions_upgrader import errors, git, mixins, models, tracker


def default_parallelism(cpu_count: int | None = None) -> int:
    """Scale the number of concurrent clones with the available CPUs.

    Below 8 CPUs every CPU is used, between 8 and 15 the count plateaus at
    8, and from 16 upwards half of the CPUs are used.

    """
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    if cpu_count >= 16:
        return cpu_count // 2
    if cpu_count >= 8:
        return 8
    return max(cpu_count, 1)


def repository_name_from_url(url: str) -> str:
    """Return the repository name of ``https://host/owner/name`` URLs, or
    an empty string if the URL has no name segment.

    """
    parts = url.split('/')
    return parts[4] if len(parts) > 4 else ''


def authenticated_url(url: str, token: str) -> str:
    """Embed the access token in an ``https://`` clone URL."""
    if not token:
        return url
    return f'https://{token}@{url.removeprefix("https://")}'


class Acquisition(mixins.LoggerMixin):
    """Clones the repositories of a run into the scratch folder."""

    def __init__(
        self,
        configuration: models.Configuration,
        run_tracker: tracker.Tracker,
        verbose: bool = False,
    ) -> None:
        super().__init__(verbose)
        self.configuration = configuration
        self.settings = configuration.acquisition
        self.tracker = run_tracker
        self.parallelism = self.settings.parallelism or default_parallelism()
        self.tasks: list[models.CloneTask] = []
        self.ticks = 0

    @property
    def scratch_dir(self) -> pathlib.Path:
        return self.configuration.scratch_dir

    def excluded_repositories(self) -> set[str]:
        """Return the names to exclude; an existing exclude file replaces
        the configured list.

        """
        exclude_file = self.settings.exclude_file
        if exclude_file.exists():
            self.logger.info(
                'Using excluded repositories from %s', exclude_file
            )
            lines = exclude_file.read_text(encoding='utf-8').splitlines()
            return {line.strip() for line in lines if line.strip()}
        return set(self.settings.exclude_repositories)

    def filter_repositories(
        self, repositories: list[models.GitHubRepository]
    ) -> list[str]:
        """Return the sorted clone URLs of the repositories to process.

        Every applicable rejection reason is counted, so a repository that
        is both archived and a fork counts towards both.

        """
        excluded = self.excluded_repositories()
        urls: list[str] = []
        for repository in repositories:
            reasons = []
            if repository.archived:
                reasons.append('archived')
            if (
                self.settings.max_size_kb is not None
                and repository.size > self.settings.max_size_kb
            ):
                reasons.append('too_big')
            if self.settings.no_forks and repository.fork:
                reasons.append('fork')
            if repository.name in excluded:
                reasons.append('excluded')
            if not repository.clone_url.startswith(
                'https://'
            ) or not repository_name_from_url(repository.clone_url):
                self.logger.warning(
                    'Ignoring invalid repository url: %s', repository.clone_url
                )
                reasons.append('invalid')
            for reason in reasons:
                self.tracker.incr(f'repositories_{reason}')
            if not reasons:
                self._log_verbose_info('Repository: %s', repository.name)
                urls.append(repository.clone_url)

        urls.sort()
        self.logger.info(
            'Filtered from %i to %i repositories (%i archived, %i too big, '
            '%i forks, %i excluded, %i invalid)',
            len(repositories),
            len(urls),
            self.tracker.get('repositories_archived'),
            self.tracker.get('repositories_too_big'),
            self.tracker.get('repositories_fork'),
            self.tracker.get('repositories_excluded'),
            self.tracker.get('repositories_invalid'),
        )
        return urls

    def reset_scratch_dir(self) -> None:
        if self.scratch_dir.exists():
            self.logger.info('Deleting folder %s', self.scratch_dir)
            shutil.rmtree(self.scratch_dir)
        self.scratch_dir.mkdir(parents=True)

    async def acquire(
        self, repositories: list[models.GitHubRepository]
    ) -> list[models.CloneTask]:
        """Recreate the scratch folder and clone the filtered repositories.

        Raises:
            errors.NoRepositoriesError: If no repository survives filtering

        """
        self.reset_scratch_dir()
        urls = self.filter_repositories(repositories)
        if not urls:
            raise errors.NoRepositoriesError(
                'No repositories to clone for '
                f'{self.configuration.github.entity}'
            )

        self.logger.info(
            'Cloning %i repositories, %i at a time',
            len(urls),
            self.parallelism,
        )
        self.tasks = []
        self.ticks = 0
        semaphore = asyncio.Semaphore(self.parallelism)
        watchdog = asyncio.create_task(self._watchdog())
        try:
            await asyncio.gather(
                *[
                    self._clone(semaphore, url, offset, len(urls))
                    for offset, url in enumerate(urls, start=1)
                ]
            )
        finally:
            watchdog.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watchdog

        # Partial clones would be scanned as if they were complete
        for task in self.tasks:
            if task.state == models.CloneState.killed and task.folder.exists():
                shutil.rmtree(task.folder, ignore_errors=True)

        self.logger.info(
            'Cloned %i of %i repositories (%i killed)',
            sum(1 for task in self.tasks if task.returncode == 0),
            len(urls),
            self.tracker.get('clones_killed'),
        )
        return self.tasks

    async def _clone(
        self, semaphore: asyncio.Semaphore, url: str, offset: int, total: int
    ) -> None:
        async with semaphore:
            task = await self._spawn(url, offset, total)
            if task is None:
                return
            task.returncode = await task.process.wait()
            if task.state == models.CloneState.running:
                task.state = models.CloneState.exited
            if task.returncode != 0:
                self.tracker.incr('clones_failed')
                self.logger.warning(
                    'Clone of %s exited with %i', url, task.returncode
                )
            else:
                self.tracker.incr('clones_succeeded')

    async def _spawn(
        self, url: str, offset: int, total: int
    ) -> models.CloneTask | None:
        folder = self.scratch_dir / repository_name_from_url(url)
        self.logger.info('Cloning (%i/%i): %s', offset, total, url)
        clone_url = authenticated_url(
            url, self.configuration.github.api_key.get_secret_value()
        )
        try:
            process = await git.clone_repository(clone_url, folder)
        except OSError as exc:
            self.tracker.incr('clones_spawn_failed')
            self.logger.error('Failed to clone %s: %s', url, exc)
            return None
        task = models.CloneTask(
            repo_url=url,
            folder=folder,
            process=process,
            started_tick=self.ticks,
        )
        self.tasks.append(task)
        return task

    async def _watchdog(self) -> None:
        """Log clones still running and kill them once they hang.

        Elapsed ticks are counted per clone from its spawn, so clones
        waiting for a free slot are never charged for the wait.

        """
        while True:
            await asyncio.sleep(self.settings.clone_tick_interval)
            self.ticks += 1
            for task in self.tasks:
                elapsed = self.ticks - task.started_tick
                if task.running and elapsed >= self.settings.clone_kill_ticks:
                    self.kill(task)
            if self.ticks % self.settings.clone_log_ticks:
                continue
            running = [task for task in self.tasks if task.running]
            if running:
                self.logger.info(
                    'Still running: %s',
                    ', '.join(task.repo_url for task in running),
                )

    def kill(self, task: models.CloneTask) -> None:
        """Kill a clone process and every process in its session."""
        self.logger.warning('Killing clone of %s', task.repo_url)
        task.state = models.CloneState.killed
        self.tracker.incr('clones_killed')
        try:
            os.killpg(task.process.pid, signal.SIGKILL)
        except ProcessLookupError:
            self.logger.debug('Clone of %s already exited', task.repo_url)
        except PermissionError:
            task.process.kill()
