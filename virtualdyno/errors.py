"""
Failure kinds surfaced by the estimation pipeline
"""

from typing import Optional, Sequence


class DynoError(ValueError):
    """Base class for pipeline failures that callers should report to the user"""


class ConfigurationError(DynoError):
    """A required channel could not be mapped to any datalog column"""

    def __init__(self, message: str, channel: Optional[str] = None,
                 aliases: Sequence[str] = (), available_headers: Sequence[str] = ()):
        super().__init__(message)
        self.channel = channel
        self.aliases = tuple(aliases)
        self.available_headers = tuple(available_headers)


class EmptyResultError(DynoError):
    """No sample survived the validity filter"""

    def __init__(self, message: str, stats=None):
        super().__init__(message)
        self.stats = stats
