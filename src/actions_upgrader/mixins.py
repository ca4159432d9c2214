"""Shared mixins for components that log."""

import logging


class LoggerMixin:
    """Provides a logger plus verbose-aware info logging.

    Messages logged with ``_log_verbose_info`` are emitted at INFO when the
    component was created with ``verbose=True`` and at DEBUG otherwise.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.logger = logging.getLogger(self.__class__.__module__)
        self.verbose = verbose

    def _log_verbose_info(self, msg: str, *args: object) -> None:
        if self.verbose:
            self.logger.info(msg, *args)
        else:
            self.logger.debug(msg, *args)
