"""Run-wide counters for reporting what a run did."""

import collections
import logging

LOGGER = logging.getLogger(__name__)


class Tracker:
    """Counts events such as filtered repositories, failed patches and
    pull request decisions.

    Created once per run and handed to the components that count.
    """

    def __init__(self) -> None:
        self.counter: collections.Counter[str] = collections.Counter()

    def incr(self, key: str, value: int = 1) -> None:
        self.counter[key] += value

    def get(self, key: str) -> int:
        return self.counter[key]

    def as_dict(self) -> dict[str, int]:
        return dict(sorted(self.counter.items()))

    def log_summary(self) -> None:
        for key, value in self.as_dict().items():
            LOGGER.info('%s: %i', key, value)
