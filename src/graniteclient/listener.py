"""Listeners receive user-facing diagnostics from an ``execute`` call."""

import logging
from abc import ABC, abstractmethod


class TaskListener(ABC):
    """Receives progress and error messages for one task.

    Messages use ``%``-style formatting with optional arguments.
    """

    @abstractmethod
    def info(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def fatal_error(self, msg: str, *args) -> None:
        pass


class LogTaskListener(TaskListener):
    """Listener that forwards messages to a logger.

    Info messages go out at ``level``; errors at ERROR and fatal errors
    at CRITICAL.
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO):
        self.logger = logger
        self.level = level

    def info(self, msg: str, *args) -> None:
        self.logger.log(self.level, msg, *args)

    def error(self, msg: str, *args) -> None:
        self.logger.error(msg, *args)

    def fatal_error(self, msg: str, *args) -> None:
        self.logger.critical(msg, *args)


DEFAULT_LISTENER = LogTaskListener(logging.getLogger("graniteclient"), logging.INFO)
