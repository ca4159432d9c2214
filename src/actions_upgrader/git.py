"""Git operations for cloned repositories.

All commands run the ``git`` executable as an asyncio subprocess. Clones
are started detached in their own session so that a hung clone can be
killed together with its helper processes.
"""

import asyncio
import logging
import pathlib

from actions_upgrader import errors

LOGGER = logging.getLogger(__name__)


async def _run_git_command(
    command: list[str], working_directory: pathlib.Path
) -> tuple[int, str, str]:
    """Run a git command and return its exit code, stdout and stderr."""
    LOGGER.debug('Running git %s in %s', ' '.join(command), working_directory)
    process = await asyncio.create_subprocess_exec(
        'git',
        *command,
        cwd=working_directory,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return (
        process.returncode,
        stdout.decode('utf-8', errors='replace').strip(),
        stderr.decode('utf-8', errors='replace').strip(),
    )


async def _check_git_command(
    command: list[str], working_directory: pathlib.Path
) -> str:
    returncode, stdout, stderr = await _run_git_command(
        command, working_directory
    )
    if returncode != 0:
        raise errors.GitCommandError(command, returncode, stderr)
    return stdout


async def clone_repository(
    url: str, folder: pathlib.Path
) -> asyncio.subprocess.Process:
    """Start cloning ``url`` into ``folder`` and return the running process.

    The clone runs in a new session and its output is discarded.

    Raises:
        OSError: If the git process could not be started

    """
    return await asyncio.create_subprocess_exec(
        'git',
        'clone',
        '--quiet',
        url,
        str(folder),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
        start_new_session=True,
    )


async def get_current_branch(repository: pathlib.Path) -> str:
    """Return the checked out branch, without any ``remote/`` prefix."""
    branch = await _check_git_command(
        ['rev-parse', '--abbrev-ref', 'HEAD'], repository
    )
    return branch.rsplit('/', 1)[-1]


async def set_config(repository: pathlib.Path, key: str, value: str) -> None:
    await _check_git_command(['config', key, value], repository)


async def commit_all(repository: pathlib.Path, message: str) -> bool:
    """Commit all tracked changes, returning False if git did not commit.

    A failed commit is logged rather than raised: the working tree may
    already be committed from an earlier run.

    """
    returncode, stdout, stderr = await _run_git_command(
        ['commit', '--all', '--message', message], repository
    )
    if returncode != 0:
        LOGGER.warning(
            'git commit in %s exited with %i: %s',
            repository,
            returncode,
            stderr or stdout,
        )
        return False
    return True


async def push(
    repository: pathlib.Path, remote_branch: str, dry_run: bool = False
) -> None:
    """Push HEAD to ``remote_branch`` on origin.

    The remote branch is overwritten: it only ever holds the upgrade
    commit, which is recreated from the default branch on every run.
    Nothing is pushed in dry-run mode.

    """
    command = ['push', '--force', 'origin', f'HEAD:{remote_branch}']
    LOGGER.info('Pushing %s to %s', repository.name, remote_branch)
    if dry_run:
        LOGGER.info('Dry-run: not running git %s', ' '.join(command))
        return
    await _check_git_command(command, repository)
