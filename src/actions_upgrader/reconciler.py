"""Pull request reconciliation for resolved action updates.

For every repository with updates the reconciler patches the workflow
files, computes a deterministic pull request title and body, and compares
them with the pull requests already open for the repository:

- an open pull request from an upgrade branch with identical title and
  body means the repository is already up to date with this run: skipped,
  nothing is committed, pushed or sent to the API;
- an open pull request from an upgrade branch with different content is
  updated in place;
- otherwise a new pull request is created.

Pushes and pull request API calls are collected and only carried out when
the run is approved. Repositories are processed in alphabetical order,
one sequential chain of calls each, so decisions and branch names are
reproducible across runs.
"""

import datetime

from actions_upgrader import (
    clients,
    errors,
    git,
    mixins,
    models,
    patcher,
    scanner,
    templates,
    tracker,
)


def clean_workflow_name(name: str) -> str:
    return scanner.strip_quotes(name.strip())


def commit_title(updates: list[models.ResolvedUpdate]) -> str:
    return f'Updated {len(updates)} github actions.'


def pull_request_body(updates: list[models.ResolvedUpdate]) -> str:
    """Render the pull request body listing every update, ordered by
    workflow name and step name.

    """
    changes = [
        f'* {clean_workflow_name(update.workflow_name)}: '
        f'{update.step_name} ({update.old_version} -> {update.new_version})'
        for update in sorted(
            updates,
            key=lambda update: (
                clean_workflow_name(update.workflow_name),
                update.step_name,
            ),
        )
    ]
    return templates.render(templates.PULL_REQUEST_BODY, changes=changes)


def branch_name(prefix: str, now: datetime.datetime) -> str:
    """One branch per calendar day: ``{prefix}YYYYMMDD``.

    The day is taken from ``now`` as given; runs default to local time.

    """
    return f'{prefix}{now:%Y%m%d}'


def local_now() -> datetime.datetime:
    """Return the current time in the local timezone."""
    return datetime.datetime.now().astimezone()


def is_upgrade_branch(ref: str, branch: str, prefix: str) -> bool:
    """Return True if ``ref`` is an upgrade branch of any day."""
    return len(ref) == len(branch) and ref.startswith(prefix)


class Reconciler(mixins.LoggerMixin):
    """Decides, per repository, whether to create, update or skip a pull
    request, and carries the decision out when approved.

    """

    def __init__(
        self,
        configuration: models.Configuration,
        github: clients.GitHub,
        run_tracker: tracker.Tracker,
        verbose: bool = False,
    ) -> None:
        super().__init__(verbose)
        self.configuration = configuration
        self.github = github
        self.tracker = run_tracker

    @property
    def owner(self) -> str:
        return self.configuration.github.organization

    async def reconcile(
        self,
        updates: list[models.ResolvedUpdate],
        now: datetime.datetime | None = None,
    ) -> models.ReconciliationResult:
        """Reconcile all updates of a run.

        Raises:
            errors.UnsupportedOperationError: If one pull request per
                action was requested

        """
        if self.configuration.split_pull_requests:
            raise errors.UnsupportedOperationError(
                'Non-combined pull requests are not supported'
            )
        now = now or local_now()
        branch = branch_name(self.configuration.branch_prefix, now)
        result = models.ReconciliationResult(
            pushed=dict.fromkeys(range(len(updates)), False)
        )

        for change_set in models.ChangeSet.group(updates):
            try:
                outcome, pending = await self._reconcile_repository(
                    change_set, branch
                )
            except (
                errors.DirectoryServiceError,
                errors.GitCommandError,
                OSError,
                UnicodeDecodeError,
            ) as exc:
                self.logger.error(
                    'Failed to reconcile %s: %s', change_set.repo_name, exc
                )
                self.tracker.incr('repositories_failed')
                outcome = models.RepositoryOutcome(
                    repo_name=change_set.repo_name,
                    state=models.ReconciliationState.skipped,
                    patched=False,
                    error=str(exc),
                )
                pending = None
            result.outcomes.append(outcome)
            self.tracker.incr(f'repositories_reconciled_{outcome.state}')
            if pending is not None:
                result.pending.append(pending)
                for index in change_set.indices:
                    result.pushed[index] = True

        if self.configuration.approve:
            self.logger.info(
                'Creating/updating pull requests: %i', len(result.pending)
            )
            for pending in result.pending:
                await self._execute(pending)
            result.executed = True
        else:
            self.logger.info(
                'Not creating/updating pull requests without approval: %i',
                len(result.pending),
            )
        return result

    def _patch(self, change_set: models.ChangeSet) -> bool:
        success = True
        for path, updates in change_set.by_workflow_file():
            if not patcher.patch(path, updates):
                self.tracker.incr('workflow_files_partially_patched')
                success = False
        return success

    async def _reconcile_repository(
        self, change_set: models.ChangeSet, branch: str
    ) -> tuple[models.RepositoryOutcome, models.PendingPullRequest | None]:
        patched = self._patch(change_set)
        title = commit_title(change_set.updates)
        body = pull_request_body(change_set.updates)
        repository = change_set.repository_path
        self.logger.info('Repository: %s', repository)

        default_branch = await git.get_current_branch(repository)
        self._log_verbose_info('Default branch: %s', default_branch)

        pull_requests = await self.github.get_open_pull_requests(
            self.owner, change_set.repo_name
        )
        upgrade_requests = [
            pull_request
            for pull_request in pull_requests
            if is_upgrade_branch(
                pull_request.head.ref,
                branch,
                self.configuration.branch_prefix,
            )
        ]
        for pull_request in upgrade_requests:
            if (
                pull_request.title == title
                and (pull_request.body or '') == body
            ):
                self.logger.info(
                    'Not updating identical pull request #%i: %s',
                    pull_request.number,
                    pull_request.title,
                )
                return (
                    models.RepositoryOutcome(
                        repo_name=change_set.repo_name,
                        state=models.ReconciliationState.skipped,
                        patched=patched,
                        pull_request_number=pull_request.number,
                    ),
                    None,
                )

        await git.set_config(
            repository, 'user.name', self.configuration.git.user_name
        )
        await git.set_config(
            repository, 'user.email', self.configuration.git.user_email
        )
        await git.commit_all(repository, title)

        existing = upgrade_requests[0] if upgrade_requests else None
        pending = models.PendingPullRequest(
            repository_path=repository,
            owner=self.owner,
            repo_name=change_set.repo_name,
            remote_branch=branch,
            default_branch=default_branch,
            title=title,
            body=body,
            number=existing.number if existing else None,
            existing_title=existing.title if existing else None,
        )
        return (
            models.RepositoryOutcome(
                repo_name=change_set.repo_name,
                state=pending.state,
                patched=patched,
                pull_request_number=pending.number,
            ),
            pending,
        )

    async def _execute(self, pending: models.PendingPullRequest) -> None:
        """Push the upgrade branch and create or update the pull request.

        Failures are logged and counted; the remaining repositories are
        still processed.

        """
        dry_run = self.configuration.dry_run
        payload = models.GitHubPullRequestPayload(
            title=pending.title,
            body=pending.body,
            head=pending.remote_branch,
            base=pending.default_branch,
        )
        try:
            await git.push(
                pending.repository_path, pending.remote_branch, dry_run
            )
            if pending.number is None:
                self.logger.info(
                    'Creating pull request in %s: %s',
                    pending.repo_name,
                    pending.title,
                )
                if not dry_run:
                    await self.github.create_pull_request(
                        pending.owner, pending.repo_name, payload
                    )
            else:
                self.logger.info(
                    'Updating pull request #%i in %s: %s',
                    pending.number,
                    pending.repo_name,
                    pending.existing_title,
                )
                if not dry_run:
                    await self.github.update_pull_request(
                        pending.owner,
                        pending.repo_name,
                        pending.number,
                        payload,
                    )
        except (errors.DirectoryServiceError, errors.GitCommandError) as exc:
            self.tracker.incr('pull_requests_failed')
            self.logger.error(
                'Failed to publish %s: %s', pending.repo_name, exc
            )
        else:
            self.tracker.incr(f'pull_requests_{pending.state}')
