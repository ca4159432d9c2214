"""In-place rewriting of action versions in workflow files.

Only the characters of the old version are replaced; indentation, quoting,
trailing comments and line endings are preserved byte for byte.
"""

import logging
import pathlib

from actions_upgrader import models, scanner

LOGGER = logging.getLogger(__name__)


def replace_version(line: str, update: models.ResolvedUpdate) -> str:
    """Splice the new version into ``line`` at the position of the old
    version that directly follows the update's step name.

    """
    start = line.index(update.step_name)
    offset = line.index('@', start) + 1
    return (
        line[:offset]
        + update.new_version
        + line[offset + len(update.old_version) :]
    )


def patch_lines(
    lines: list[str], update: models.ResolvedUpdate
) -> int | None:
    """Apply one update to the first matching line, returning the line
    number it was applied to, or None when the step was not found.

    """
    for number, line in enumerate(lines):
        if scanner.parse_uses(line) != update.step_name:
            continue
        content = scanner.strip_line_ending(line)
        lines[number] = replace_version(content, update) + line[len(content) :]
        return number
    return None


def patch(path: pathlib.Path, updates: list[models.ResolvedUpdate]) -> bool:
    """Apply updates to a workflow file and write it back.

    A step that can not be found is logged and the remaining updates are
    still applied. The file is written with whatever updates succeeded.

    Returns:
        False if any update could not be applied

    """
    lines = scanner.read_lines(path)
    success = True
    for update in updates:
        number = patch_lines(lines, update)
        if number is None:
            LOGGER.warning(
                'Could not find step "%s" in workflow %s of repository %s',
                update.step_name,
                path,
                update.repo_name,
            )
            success = False
            continue
        LOGGER.info(
            'Updated %s:%i: %s -> %s',
            path,
            number + 1,
            update.old_version,
            update.new_version,
        )

    LOGGER.debug('Saving %s', path)
    with path.open('w', encoding='utf-8', newline='') as handle:
        handle.write(''.join(lines))
    return success
