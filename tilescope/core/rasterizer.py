"""Coarse layer-colored level previews rendered with QPainter."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QBuffer, QIODevice, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPen

from tilescope.core.config import Settings
from tilescope.core.levels import ParsedLevel, TileLayer

logger = logging.getLogger(__name__)

_PLACEHOLDER_BG = "#e6f0f0"
_PLACEHOLDER_MARK = "#78909c"


def image_to_data_uri(image: QImage) -> str:
    """Encode an image as a ``data:image/png;base64,...`` URI."""
    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    encoded = buffer.data().toBase64().data().decode("ascii")
    buffer.close()
    return f"data:image/png;base64,{encoded}"


class PreviewRasterizer:
    """Paints each included layer as solid colored tiles, then stretches the
    result to the thumbnail size.

    A layer is included when it is visible, does not repeat and is not the
    collision layer. The n-th included layer gets ``palette[n % len(palette)]``.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or Settings()
        self._palette_names = list(settings.palette)
        self._palette = [QColor(name) for name in self._palette_names]
        invalid = [n for n, c in zip(self._palette_names, self._palette) if not c.isValid()]
        if invalid:
            raise ValueError(f"Unknown palette color(s): {', '.join(invalid)}")
        self._collision_layer = settings.collision_layer
        self._width = settings.thumbnail_width
        self._height = settings.thumbnail_height

    @property
    def palette(self) -> List[str]:
        return list(self._palette_names)

    @property
    def thumbnail_size(self) -> Tuple[int, int]:
        return self._width, self._height

    def raster_bounds(self, level: ParsedLevel) -> Tuple[int, int]:
        # Width, height and tile size are maximized independently, so mixed
        # tile sizes can overestimate the canvas.
        max_w = max((layer.width for layer in level.layers), default=0)
        max_h = max((layer.height for layer in level.layers), default=0)
        max_ts = max((layer.tile_size for layer in level.layers), default=0)
        return max_w * max_ts, max_h * max_ts

    def is_included(self, layer: TileLayer) -> bool:
        return layer.visible and not layer.repeat and layer.name != self._collision_layer

    def layer_colors(self, level: ParsedLevel) -> List[Tuple[TileLayer, QColor]]:
        """Included layers in paint order, each paired with its color."""
        included = [layer for layer in level.layers if self.is_included(layer)]
        return [
            (layer, self._palette[i % len(self._palette)])
            for i, layer in enumerate(included)
        ]

    def render_full(self, level: ParsedLevel) -> QImage:
        """Render the level at full size (one pixel per tile pixel)."""
        width, height = self.raster_bounds(level)
        if width == 0 or height == 0:
            return QImage()

        image = QImage(width, height, QImage.Format.Format_ARGB32)
        image.fill(Qt.GlobalColor.transparent)
        painter = QPainter(image)
        try:
            for layer, color in self.layer_colors(level):
                self._paint_layer(painter, layer, color)
        finally:
            painter.end()
        return image

    def render(self, level: Optional[ParsedLevel]) -> QImage:
        if level is None:
            return self.placeholder()

        full = self.render_full(level)
        if full.isNull():
            logger.debug("Level has an empty raster, returning a blank thumbnail")
            blank = QImage(self._width, self._height, QImage.Format.Format_ARGB32)
            blank.fill(Qt.GlobalColor.transparent)
            return blank
        return full.scaled(
            self._width,
            self._height,
            Qt.AspectRatioMode.IgnoreAspectRatio,
            Qt.TransformationMode.FastTransformation,
        )

    async def render_async(
        self,
        level: Optional[ParsedLevel],
        callback: Optional[Callable[[QImage], None]] = None,
    ) -> QImage:
        """Render on a later loop iteration and hand the image to ``callback``."""
        await asyncio.sleep(0)
        image = self.render(level)
        if callback is not None:
            callback(image)
        return image

    def placeholder(self) -> QImage:
        """Thumbnail shown for levels whose data could not be loaded."""
        image = QImage(self._width, self._height, QImage.Format.Format_ARGB32)
        image.fill(QColor(_PLACEHOLDER_BG))
        painter = QPainter(image)
        try:
            pen = QPen(QColor(_PLACEHOLDER_MARK))
            pen.setWidth(4)
            painter.setPen(pen)
            inset = min(self._width, self._height) // 4
            painter.drawLine(inset, inset, self._width - inset, self._height - inset)
            painter.drawLine(self._width - inset, inset, inset, self._height - inset)
        finally:
            painter.end()
        return image

    @staticmethod
    def _paint_layer(painter: QPainter, layer: TileLayer, color: QColor) -> None:
        ts = layer.tile_size
        for y in range(layer.height):
            row = layer.data[y]
            for x in range(layer.width):
                if row[x] > 0:
                    painter.fillRect(x * ts, y * ts, ts, ts, color)
