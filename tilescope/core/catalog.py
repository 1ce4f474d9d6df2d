"""Browsable set of level previews with single selection."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from PySide6.QtGui import QImage

from tilescope.core.batch_loader import BatchLoader
from tilescope.core.config import Settings
from tilescope.core.errors import TilescopeError
from tilescope.core.levels import LevelPath, LoadResult, ParsedLevel
from tilescope.core.rasterizer import PreviewRasterizer, image_to_data_uri
from tilescope.core.sources import LevelSource

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class CatalogEntry:
    """One level in the catalog. ``thumbnail`` is None while still rendering."""

    path: LevelPath
    data: Optional[ParsedLevel]
    thumbnail: Optional[QImage] = None
    selected: bool = False
    error: Optional[TilescopeError] = None

    @property
    def name(self) -> str:
        return self.path[self.path.rfind("/") + 1:]

    @property
    def thumbnail_pending(self) -> bool:
        return self.thumbnail is None

    def attach_thumbnail(self, image: QImage) -> None:
        if self.thumbnail is not None:
            raise RuntimeError(f"{self.path}: thumbnail already attached")
        self.thumbnail = image

    def thumbnail_data_uri(self) -> Optional[str]:
        if self.thumbnail is None:
            return None
        return image_to_data_uri(self.thumbnail)


class PreviewCatalog:
    """Loads a batch of levels, renders a thumbnail per level and tracks which
    one the user picked.

    Selection is either empty or a single path. Selecting the same path twice
    within ``double_activation_interval`` seconds confirms it.
    """

    def __init__(
        self,
        source: LevelSource,
        settings: Optional[Settings] = None,
        *,
        loader: Optional[BatchLoader] = None,
        rasterizer: Optional[PreviewRasterizer] = None,
        on_entries: Optional[Callable[[List[CatalogEntry]], None]] = None,
        on_thumbnail: Optional[Callable[[CatalogEntry], None]] = None,
        on_selected: Optional[Callable[[Optional[LevelPath]], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._settings = settings or Settings()
        self._loader = loader or BatchLoader(fetch_timeout=self._settings.fetch_timeout)
        self._rasterizer = rasterizer or PreviewRasterizer(self._settings)
        self._on_entries = on_entries
        self._on_thumbnail = on_thumbnail
        self._on_selected = on_selected
        self._clock = clock

        self._entries: Dict[LevelPath, CatalogEntry] = {}
        self._selected: Optional[LevelPath] = None
        self._last_activation: Optional[Tuple[LevelPath, float]] = None
        self._load_task: Optional[asyncio.Task] = None
        self._thumbnail_tasks: Set[asyncio.Task] = set()
        # Bumped on close so that late completions are dropped.
        self._generation = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self._load_task is not None

    async def open(self, paths: Iterable[LevelPath]) -> List[CatalogEntry]:
        """Load ``paths`` and return their entries once every fetch settled.

        Thumbnails keep rendering in the background; use ``wait_thumbnails``
        to wait for them.
        """
        self.close()
        return await self._open(paths, self._generation)

    async def open_directory(
        self,
        directory: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[CatalogEntry]:
        directory = directory if directory is not None else self._settings.levels_directory
        category = category if category is not None else self._settings.category
        self.close()
        generation = self._generation
        paths = await self._source.browse(directory, category)
        if generation != self._generation:
            logger.info("Catalog closed while browsing %s", directory)
            return []
        logger.info("Found %d level script(s) in %s", len(paths), directory)
        return await self._open(paths, generation)

    async def _open(self, paths: Iterable[LevelPath], generation: int) -> List[CatalogEntry]:
        self._load_task = asyncio.ensure_future(self._loader.load(paths, self._source.fetch))
        try:
            results = await self._load_task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            if generation != self._generation:
                logger.info("Catalog closed before loading finished")
                return []
            raise
        finally:
            if generation == self._generation:
                self._load_task = None

        entries = self._build_entries(results)
        logger.info("Catalog opened with %d level(s)", len(entries))
        if self._on_entries is not None:
            self._on_entries(list(entries))
        for entry in entries:
            task = asyncio.create_task(self._render_thumbnail(entry, generation))
            self._thumbnail_tasks.add(task)
            task.add_done_callback(self._thumbnail_tasks.discard)
        return entries

    async def wait_thumbnails(self) -> None:
        if self._thumbnail_tasks:
            await asyncio.gather(*list(self._thumbnail_tasks))

    def close(self) -> None:
        """Drop all entries and stop any loading or rendering still running."""
        self._generation += 1
        if self._load_task is not None:
            self._load_task.cancel()
            self._load_task = None
        for task in list(self._thumbnail_tasks):
            task.cancel()
        self._thumbnail_tasks.clear()
        self._entries = {}
        self._selected = None
        self._last_activation = None

    def _build_entries(self, results: List[LoadResult]) -> List[CatalogEntry]:
        entries = [CatalogEntry(path=r.path, data=r.data, error=r.error) for r in results]
        self._entries = {entry.path: entry for entry in entries}
        return entries

    async def _render_thumbnail(self, entry: CatalogEntry, generation: int) -> None:
        def _ready(image: QImage) -> None:
            if generation != self._generation:
                return
            entry.attach_thumbnail(image)
            if self._on_thumbnail is not None:
                self._on_thumbnail(entry)

        await self._rasterizer.render_async(entry.data, _ready)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> List[CatalogEntry]:
        """Entries in the order their loads completed."""
        return list(self._entries.values())

    def sorted_entries(self) -> List[CatalogEntry]:
        return sorted(self._entries.values(), key=lambda e: e.path)

    def entry(self, path: LevelPath) -> CatalogEntry:
        return self._entries[path]

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selected_path(self) -> Optional[LevelPath]:
        return self._selected

    def select(self, path: LevelPath) -> Optional[LevelPath]:
        """Select ``path``. Returns the path when this counts as a confirm."""
        entry = self._entries[path]
        now = self._clock()
        last = self._last_activation
        self._last_activation = (path, now)

        if (
            last is not None
            and last[0] == path
            and self._selected == path
            and now - last[1] <= self._settings.double_activation_interval
        ):
            logger.debug("Double activation of %s", path)
            return self.confirm()

        if self._selected is not None and self._selected != path:
            previous = self._entries.get(self._selected)
            if previous is not None:
                previous.selected = False
        self._selected = path
        entry.selected = True
        return None

    def confirm(self) -> Optional[LevelPath]:
        path = self._selected
        self._clear_selection()
        logger.info("Level selection confirmed: %s", path)
        if self._on_selected is not None:
            self._on_selected(path)
        return path

    def cancel(self) -> None:
        self._clear_selection()
        logger.info("Level selection cancelled")
        if self._on_selected is not None:
            self._on_selected(None)
        return None

    def _clear_selection(self) -> None:
        if self._selected is not None:
            entry = self._entries.get(self._selected)
            if entry is not None:
                entry.selected = False
        self._selected = None
        self._last_activation = None
