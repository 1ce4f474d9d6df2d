from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tilescope.core.errors import LevelFormatError, TilescopeError

LevelPath = str
IndexMatrix = Tuple[Tuple[int, ...], ...]


def _require_int(raw: Dict[str, Any], key: str, where: str) -> int:
    value = raw.get(key)
    # bool is an int subclass; a layer with `width: true` is malformed
    if isinstance(value, bool) or not isinstance(value, int):
        raise LevelFormatError(f"{where}: missing or invalid '{key}'")
    if value < 0:
        raise LevelFormatError(f"{where}: '{key}' must be non-negative")
    return value


def _optional_bool(raw: Dict[str, Any], key: str, default: bool, where: str) -> bool:
    value = raw.get(key, default)
    # level editors commonly write flags as 0/1
    if not isinstance(value, (bool, int)):
        raise LevelFormatError(f"{where}: '{key}' must be a boolean or 0/1")
    return bool(value)


@dataclass(frozen=True)
class TileLayer:
    """A named grid of tile indices. Index 0 marks an empty cell."""

    name: str
    width: int
    height: int
    tile_size: int
    data: IndexMatrix = field(repr=False)
    visible: bool = True
    repeat: bool = False

    def __post_init__(self) -> None:
        if len(self.data) != self.height:
            raise LevelFormatError(
                f"layer '{self.name}': expected {self.height} rows, got {len(self.data)}"
            )
        for y, row in enumerate(self.data):
            if len(row) != self.width:
                raise LevelFormatError(
                    f"layer '{self.name}': row {y} has {len(row)} columns, expected {self.width}"
                )
            for value in row:
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise LevelFormatError(
                        f"layer '{self.name}': row {y} holds invalid tile index {value!r}"
                    )

    @classmethod
    def from_dict(cls, raw: Any, index: int = 0) -> "TileLayer":
        where = f"layer[{index}]"
        if not isinstance(raw, dict):
            raise LevelFormatError(f"{where}: expected an object")
        name = raw.get("name")
        if not isinstance(name, str):
            raise LevelFormatError(f"{where}: missing or invalid 'name'")
        rows = raw.get("data")
        if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
            raise LevelFormatError(f"{where}: 'data' must be a list of rows")
        return cls(
            name=name,
            width=_require_int(raw, "width", where),
            height=_require_int(raw, "height", where),
            tile_size=_require_int(raw, "tilesize", where),
            data=tuple(tuple(row) for row in rows),
            visible=_optional_bool(raw, "visible", True, where),
            repeat=_optional_bool(raw, "repeat", False, where),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "tilesize": self.tile_size,
            "visible": self.visible,
            "repeat": self.repeat,
            "data": [list(row) for row in self.data],
        }


@dataclass(frozen=True)
class ParsedLevel:
    """Tile layers recovered from a level script, in file (paint) order."""

    layers: Tuple[TileLayer, ...] = ()

    @classmethod
    def from_dict(cls, payload: Any) -> "ParsedLevel":
        if not isinstance(payload, dict):
            raise LevelFormatError("expected an object with a 'layer' list")
        raw_layers = payload.get("layer", [])
        if not isinstance(raw_layers, list):
            raise LevelFormatError("'layer' must be a list")
        return cls(layers=tuple(TileLayer.from_dict(raw, i) for i, raw in enumerate(raw_layers)))

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"layer": [layer.to_dict() for layer in self.layers]}


@dataclass(frozen=True)
class LoadResult:
    """Outcome of fetching and parsing one path. ``data`` is None when absent.

    ``error`` names why the data is absent, if anything went wrong; a script
    that simply has no level region leaves it None.
    """

    path: LevelPath
    data: Optional[ParsedLevel]
    error: Optional[TilescopeError] = None
