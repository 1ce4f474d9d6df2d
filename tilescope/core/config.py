from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from tilescope.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TILESCOPE_CONFIG"

DEFAULT_PALETTE = [
    "red",
    "gray",
    "orange",
    "blue",
    "purple",
    "turquoise",
    "cyan",
    "pink",
    "hotpink",
]


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".tilescope" / "config.yaml"


@dataclass
class Settings:
    """Runtime settings. Every field has a default, so the file is optional."""

    levels_root: str = "."
    levels_directory: str = "levels"
    category: str = "scripts"
    fetch_timeout: Optional[float] = 10.0
    thumbnail_width: int = 150
    thumbnail_height: int = 150
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    collision_layer: str = "collision"
    double_activation_interval: float = 0.4

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "Settings":
        config_path = Path(path) if path is not None else default_config_path()
        if not config_path.exists():
            logger.debug("No settings file at %s, using defaults", config_path)
            return cls()
        try:
            raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"{config_path.name}: could not read settings: {e}") from e
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path.name}: expected a YAML mapping")
        settings = cls.from_dict(raw, source=config_path.name)
        logger.info("Loaded settings from %s", config_path)
        return settings

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], source: str = "settings") -> "Settings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"{source}: unknown setting(s): {', '.join(unknown)}")

        settings = cls(**raw)
        settings._validate(source)
        return settings

    def _validate(self, source: str) -> None:
        for name in ("levels_root", "levels_directory", "category", "collision_layer"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{source}: '{name}' must be a string")
        if self.fetch_timeout is not None:
            if isinstance(self.fetch_timeout, bool) or not isinstance(self.fetch_timeout, (int, float)):
                raise ConfigError(f"{source}: 'fetch_timeout' must be a number or null")
            if self.fetch_timeout <= 0:
                raise ConfigError(f"{source}: 'fetch_timeout' must be positive")
        for name in ("thumbnail_width", "thumbnail_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{source}: '{name}' must be a positive integer")
        if (
            not isinstance(self.palette, list)
            or not self.palette
            or not all(isinstance(c, str) and c.strip() for c in self.palette)
        ):
            raise ConfigError(f"{source}: 'palette' must be a non-empty list of color names")
        interval = self.double_activation_interval
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
            raise ConfigError(f"{source}: 'double_activation_interval' must be a non-negative number")

    @property
    def levels_path(self) -> Path:
        return Path(self.levels_root).expanduser()
