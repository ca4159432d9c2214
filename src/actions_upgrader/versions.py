"""Version resolution for action references.

Versions are compared leniently rather than as semantic versions: only
"numeric tags" (an optional leading ``v``/``V`` followed by digits and
dots) take part, dot separated components are compared numerically when
both sides are integers, and comparison stops at the end of the shorter
version, so ``1.2`` and ``1.2.3`` compare equal.
"""

import collections
import logging
import string
import typing

from actions_upgrader import models

LOGGER = logging.getLogger(__name__)

HEX_DIGITS = frozenset('0123456789abcdef')
SHA256_PREFIX = 'sha256:'


def is_digest(version: str) -> bool:
    """Return True if the version is a 40 character SHA-1 commit or a
    ``sha256:`` digest, which are immutable and never upgraded.

    """
    if len(version) == 40:
        return set(version) <= HEX_DIGITS
    if len(version) == 71 and version.startswith(SHA256_PREFIX):
        return set(version[len(SHA256_PREFIX) :]) <= HEX_DIGITS
    return False


def is_numeric_tag(value: str) -> bool:
    """Return True for an optional leading ``v``/``V`` followed only by
    digits and dots. The empty string is not a numeric tag.

    """
    if not value:
        return False
    for offset, char in enumerate(value):
        if offset == 0 and char in 'vV':
            continue
        if char not in string.digits and char != '.':
            return False
    return True


def owner_repo(step_name: str) -> str:
    """Return the ``owner/repo`` coordinate of a reference.

    The coordinate is the text before the ``@`` up to the second ``/``,
    so actions addressed by sub-path (``owner/repo/path@v1``) share the
    coordinate of their repository.

    """
    target = step_name.split('@', 1)[0]
    return '/'.join(target.split('/')[:2])


def split_reference(step_name: str) -> tuple[str, str] | None:
    """Split a ``uses:`` value into its coordinate and version.

    Returns None when the value is not pinned to a version, e.g. local
    ``./path`` actions or ``docker://`` references without a tag.

    """
    target, separator, version = step_name.partition('@')
    if not separator or not version:
        return None
    return owner_repo(target), version


def _strip_prefix(version: str) -> str:
    if version[:1] in ('v', 'V'):
        return version[1:]
    return version


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _is_integer(value: str) -> bool:
    return value.isascii() and value.isdigit()


def compare_versions(version1: str, version2: str) -> int:
    """Compare two versions, returning -1, 0 or 1.

    Components beyond the length of the shorter version are ignored.
    Anything after a ``-`` in a component is dropped before comparing.

    """
    parts1 = _strip_prefix(version1).split('.')
    parts2 = _strip_prefix(version2).split('.')
    for part1, part2 in zip(parts1, parts2, strict=False):
        value1 = part1.split('-', 1)[0]
        value2 = part2.split('-', 1)[0]
        if _is_integer(value1) and _is_integer(value2):
            if int(value1) != int(value2):
                return _sign(int(value1) - int(value2))
        elif value1 != value2:
            return -1 if value1 < value2 else 1
    return 0


def select_highest(tags: typing.Iterable[str]) -> str | None:
    """Return the highest tag, preferring the shorter spelling when two
    tags compare equal (``1.0`` over ``v1.0``).

    """
    highest: str | None = None
    for tag in tags:
        if highest is None:
            highest = tag
            continue
        diff = compare_versions(tag, highest)
        if diff > 0 or (diff == 0 and len(tag) < len(highest)):
            highest = tag
    return highest


def resolve(old_version: str, tags: typing.Iterable[str]) -> str | None:
    """Return the version ``old_version`` should be bumped to, if any.

    Digest pinned and non-numeric versions are never resolved, and no
    version is returned when the highest tag compares equal to the
    current one, whatever its spelling.

    """
    if is_digest(old_version) or not is_numeric_tag(old_version):
        return None
    highest = select_highest(tag for tag in tags if is_numeric_tag(tag))
    if highest is None or compare_versions(old_version, highest) == 0:
        return None
    return highest


def resolve_updates(
    references: list[models.ActionReference], tags: list[models.Tag]
) -> list[models.ResolvedUpdate]:
    """Resolve the updates for a set of references against the tag
    directory of their coordinates.

    References are processed ordered by workflow file and step name so
    the output is reproducible.

    """
    tags_by_coordinate: dict[str, list[str]] = collections.defaultdict(list)
    for tag in sorted(
        (tag for tag in tags if is_numeric_tag(tag.name)),
        key=lambda tag: (tag.owner_repo, tag.name),
    ):
        tags_by_coordinate[tag.owner_repo].append(tag.name)
    LOGGER.debug(
        'Resolving %i references against %i numeric tags',
        len(references),
        sum(len(value) for value in tags_by_coordinate.values()),
    )

    updates: list[models.ResolvedUpdate] = []
    for reference in sorted(
        references, key=lambda ref: (str(ref.workflow_file), ref.step_name)
    ):
        if is_digest(reference.old_version):
            LOGGER.debug('Skipping digest pinned %s', reference.step_name)
            continue
        new_version = resolve(
            reference.old_version,
            tags_by_coordinate.get(reference.owner_repo, []),
        )
        if new_version is not None:
            updates.append(
                models.ResolvedUpdate(
                    reference=reference, new_version=new_version
                )
            )
    return updates
