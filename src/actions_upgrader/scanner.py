"""Discovery of action references in GitHub workflow files.

Workflow files are read line by line rather than parsed as YAML: an action
reference is any line whose trimmed text starts with ``uses:`` or
``- uses:``. Multi-line values and flow style lists are not recognized.
"""

import logging
import pathlib

from actions_upgrader import models, versions

LOGGER = logging.getLogger(__name__)

USES_PREFIXES = ('uses: ', '- uses: ')
WORKFLOW_NAME_PREFIX = 'name: '
WORKFLOWS_PATH = pathlib.Path('.github') / 'workflows'


def read_lines(path: pathlib.Path) -> list[str]:
    """Read a file keeping each line's original line ending."""
    with path.open('r', encoding='utf-8', newline='') as handle:
        return handle.read().splitlines(keepends=True)


def strip_line_ending(line: str) -> str:
    return line.rstrip('\r\n')


def parse_uses(line: str) -> str | None:
    """Return the ``uses:`` payload of a line without trailing comment.

    Returns None if the line is not an action reference or the payload is
    empty.

    """
    trimmed = line.strip()
    for prefix in USES_PREFIXES:
        if trimmed.startswith(prefix):
            payload = trimmed[len(prefix) :].split('#', 1)[0].strip()
            return payload or None
    return None


def strip_quotes(value: str) -> str:
    """Remove one pair of matching single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in '\'"':
        return value[1:-1]
    return value


def workflow_name(lines: list[str], path: pathlib.Path) -> str:
    """Return the top-level ``name:`` of a workflow, or the file name
    without extension when it has none.

    """
    for line in lines:
        if line.startswith(WORKFLOW_NAME_PREFIX):
            return strip_quotes(
                strip_line_ending(line)[len(WORKFLOW_NAME_PREFIX) :]
            )
    return path.stem


def find_workflow_files(
    root: pathlib.Path,
) -> list[tuple[str, pathlib.Path]]:
    """Return ``(repository name, workflow file)`` pairs for every
    repository folder directly below ``root``.

    """
    workflow_files: list[tuple[str, pathlib.Path]] = []
    for repository in sorted(path for path in root.iterdir() if path.is_dir()):
        workflows = repository / WORKFLOWS_PATH
        if not workflows.is_dir():
            LOGGER.debug('No workflows in %s', repository.name)
            continue
        for pattern in ('*.yml', '*.yaml'):
            workflow_files.extend(
                (repository.name, path)
                for path in sorted(workflows.glob(pattern))
                if path.is_file()
            )
    return workflow_files


def scan_file(
    repo_name: str, path: pathlib.Path
) -> list[models.ActionReference]:
    """Return the version pinned action references of one workflow file."""
    lines = read_lines(path)
    name = workflow_name(lines, path)
    references: list[models.ActionReference] = []
    for line in lines:
        step_name = parse_uses(line)
        if step_name is None:
            continue
        coordinate = versions.split_reference(step_name)
        if coordinate is None:
            LOGGER.debug('Ignoring unversioned step %s in %s', step_name, path)
            continue
        references.append(
            models.ActionReference(
                repo_name=repo_name,
                workflow_file=path,
                workflow_name=name,
                step_name=step_name,
                owner_repo=coordinate[0],
                old_version=coordinate[1],
            )
        )
    return references


def scan(root: pathlib.Path) -> list[models.ActionReference]:
    """Return every action reference of every repository below ``root``."""
    workflow_files = find_workflow_files(root)
    LOGGER.info('Workflow files: %i', len(workflow_files))
    references: list[models.ActionReference] = []
    for repo_name, path in workflow_files:
        try:
            references.extend(scan_file(repo_name, path))
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning('Unable to read %s: %s', path, exc)
    LOGGER.info('Steps: %i', len(references))
    return references
