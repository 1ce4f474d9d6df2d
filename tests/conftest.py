"""Shared fixtures: offscreen Qt application and level script builders."""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, List, Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def layer_dict(
    name: str = "fg",
    width: int = 4,
    height: int = 4,
    tilesize: int = 8,
    fill: int = 1,
    visible: Any = True,
    repeat: Any = False,
    data: Optional[List[List[int]]] = None,
) -> Dict[str, Any]:
    return {
        "name": name,
        "width": width,
        "height": height,
        "tilesize": tilesize,
        "visible": visible,
        "repeat": repeat,
        "data": data if data is not None else [[fill] * width for _ in range(height)],
    }


def loose_literal(layers: List[Dict[str, Any]]) -> str:
    """Render layers the way a level editor writes them: bare keys, trailing commas."""
    parts = []
    for layer in layers:
        rows = ",\n        ".join("[" + ", ".join(str(v) for v in row) + ",]" for row in layer["data"])
        parts.append(
            "{\n"
            f"      name: {json.dumps(layer['name'])},\n"
            f"      width: {layer['width']},\n"
            f"      height: {layer['height']},\n"
            f"      tilesize: {layer['tilesize']},\n"
            f"      visible: {json.dumps(layer['visible'])},\n"
            f"      repeat: {json.dumps(layer['repeat'])},\n"
            f"      data: [\n        {rows},\n      ],\n"
            "    },"
        )
    body = "\n    ".join(parts)
    return "{\n  entity: [],\n  layer: [\n    " + body + "\n  ],\n}"


def level_script(layers: List[Dict[str, Any]], name: str = "LevelTest") -> str:
    return (
        f"ig.module('game.levels.{name.lower()}')\n"
        ".requires('impact.image')\n"
        ".defines(function(){\n"
        f"{name}=/*JSON-BEGIN*/{loose_literal(layers)};/*JSON-END*/\n"
        f"{name}Resources=[];\n"
        "});\n"
    )


@pytest.fixture()
def make_script() -> Callable[..., str]:
    return level_script


@pytest.fixture()
def make_layer() -> Callable[..., Dict[str, Any]]:
    return layer_dict
