"""
Logging infrastructure for the CHIP-8 core.

The core never imports pygame and never prints on its own; it reports through
an :class:`ILogger` with level-based filtering.  Level 0 is fatal faults,
level 1 recoverable oddities (unknown opcodes), level 3 a per-instruction
trace.
"""

import logging
from abc import ABC, abstractmethod


class ILogger(ABC):
    """Logging interface with level-based filtering."""

    @property
    @abstractmethod
    def level(self) -> int: ...

    @level.setter
    @abstractmethod
    def level(self, value: int): ...

    @abstractmethod
    def log(self, level: int, message: str): ...


class NullLogger(ILogger):
    """No-op logger implementation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._level = 0
        return cls._instance

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        pass


# Core level -> stdlib logging level.
_STD_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
}


class StdLogger(ILogger):
    """Logger that forwards to the standard :mod:`logging` package.

    Used by the host shell so core messages end up in the same stream as the
    platform's own ``logging.getLogger(__name__)`` output.
    """

    def __init__(self, level: int = 1, name: str = "chip8vm.core"):
        self._level = level
        self._logger = logging.getLogger(name)

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            self._logger.log(_STD_LEVELS.get(level, logging.DEBUG), message)


# Default logger instance
DEFAULT_LOGGER: ILogger = NullLogger()
