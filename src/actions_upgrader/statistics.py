"""Per-action summary of the updates found in a run."""

import pydantic

from actions_upgrader import models

HEADERS = ('Action', 'Repos', 'Steps')


class ActionStatistics(pydantic.BaseModel):
    """Updates of one owner/repo coordinate across all repositories."""

    owner_repo: str
    repositories: list[str] = pydantic.Field(default_factory=list)
    version_pairs: list[tuple[str, str]] = pydantic.Field(
        default_factory=list
    )
    steps: int = 0

    @property
    def label(self) -> str:
        old_versions = ','.join(
            sorted({old for old, _new in self.version_pairs})
        )
        new_version = self.version_pairs[0][1]
        return f'{self.owner_repo} ({old_versions} -> {new_version})'


def summarize(
    updates: list[models.ResolvedUpdate],
) -> list[ActionStatistics]:
    """Group updates per action coordinate, ordered by the number of
    repositories, then steps, then coordinate.

    """
    statistics: dict[str, ActionStatistics] = {}
    for update in updates:
        item = statistics.setdefault(
            update.owner_repo, ActionStatistics(owner_repo=update.owner_repo)
        )
        if update.repo_name not in item.repositories:
            item.repositories.append(update.repo_name)
        pair = (update.old_version, update.new_version)
        if pair not in item.version_pairs:
            item.version_pairs.append(pair)
        item.steps += 1
    return sorted(
        statistics.values(),
        key=lambda item: (len(item.repositories), item.steps, item.owner_repo),
    )


def format_table(updates: list[models.ResolvedUpdate]) -> list[str]:
    """Return the lines of the summary table, including a total row."""
    rows = [HEADERS] + [
        (item.label, str(len(item.repositories)), str(item.steps))
        for item in summarize(updates)
    ]
    total = (
        'Total',
        str(len({update.repo_name for update in updates})),
        str(len(updates)),
    )
    widths = [
        max(len(row[column]) for row in [*rows, total])
        for column in range(len(HEADERS))
    ]
    return [
        row[0].ljust(widths[0] + 1)
        + ''.join(
            value.rjust(width + 1)
            for value, width in zip(row[1:], widths[1:], strict=True)
        )
        for row in [*rows, total]
    ]
