"""Exception types raised while loading and previewing level scripts."""

from __future__ import annotations


class TilescopeError(Exception):
    """Base class for all tilescope errors."""


class NormalizationParseError(TilescopeError, ValueError):
    """The sentinel region is still not valid JSON after normalization."""

    def __init__(self, message: str, region: str) -> None:
        super().__init__(message)
        self.region = region


class LevelFormatError(TilescopeError, ValueError):
    """Decoded level data does not have the expected structure."""


class FetchError(TilescopeError, OSError):
    """A level source could not deliver the raw text of a path."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ConfigError(TilescopeError, ValueError):
    """The settings file is malformed."""
