"""Where level scripts come from.

The catalog only needs ``browse`` and ``fetch``. ``DirectoryLevelSource``
serves both from a local directory tree; a networked source only has to
provide the same two coroutines.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from tilescope.core.errors import FetchError
from tilescope.core.levels import LevelPath

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: Dict[str, Sequence[str]] = {
    "scripts": (".js",),
    "images": (".png", ".gif", ".jpg", ".jpeg"),
}


class LevelSource(Protocol):
    async def browse(self, directory: str, category: str) -> List[LevelPath]:
        ...

    async def fetch(self, path: LevelPath) -> Optional[str]:
        ...


class DirectoryLevelSource:
    """Serves level paths relative to ``root`` as POSIX strings."""

    def __init__(
        self,
        root: Path,
        categories: Optional[Dict[str, Sequence[str]]] = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._categories = dict(categories or DEFAULT_CATEGORIES)

    @property
    def root(self) -> Path:
        return self._root

    async def browse(self, directory: str, category: str) -> List[LevelPath]:
        suffixes = self._categories.get(category)
        if suffixes is None:
            raise ValueError(f"Unknown file category: {category}")
        return await asyncio.to_thread(self._list, directory, tuple(suffixes))

    async def fetch(self, path: LevelPath) -> Optional[str]:
        return await asyncio.to_thread(self._read, path)

    def _resolve(self, path: str) -> Path:
        resolved = (self._root / path).resolve()
        if resolved != self._root and self._root not in resolved.parents:
            raise FetchError(path, "outside of the levels root")
        return resolved

    def _list(self, directory: str, suffixes: Sequence[str]) -> List[LevelPath]:
        base = self._resolve(directory)
        if not base.is_dir():
            logger.warning("Levels directory not found: %s", base)
            return []
        paths = [
            p.relative_to(self._root).as_posix()
            for p in base.rglob("*")
            if p.is_file() and p.suffix.lower() in suffixes
        ]
        return sorted(paths)

    def _read(self, path: LevelPath) -> Optional[str]:
        file_path = self._resolve(path)
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FetchError(path, str(e)) from e
