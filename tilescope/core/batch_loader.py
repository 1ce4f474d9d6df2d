"""Concurrent fetch-and-parse of a batch of level scripts."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Awaitable, Callable, Iterable, List, Optional

from tilescope.core.errors import FetchError
from tilescope.core.levels import LevelPath, LoadResult
from tilescope.core.script_region import ScriptRegionParser

logger = logging.getLogger(__name__)

FetchRaw = Callable[[LevelPath], Awaitable[Optional[str]]]


class BatchLoader:
    """Fetches N level scripts at once and returns exactly N LoadResults.

    Results come back in completion order, so callers must match them by
    ``path``. A failed or timed-out fetch yields ``data=None`` with the
    cause in ``error`` and never aborts the rest of the batch.
    """

    def __init__(
        self,
        parser: Optional[ScriptRegionParser] = None,
        *,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        self._parser = parser or ScriptRegionParser()
        self._fetch_timeout = fetch_timeout

    @property
    def fetch_timeout(self) -> Optional[float]:
        return self._fetch_timeout

    async def load(
        self,
        paths: Iterable[LevelPath],
        fetch_raw: FetchRaw,
        on_result: Optional[Callable[[LoadResult], None]] = None,
    ) -> List[LoadResult]:
        paths = list(paths)
        duplicates = sorted(p for p, n in Counter(paths).items() if n > 1)
        if duplicates:
            raise ValueError(f"Duplicate level paths in batch: {', '.join(duplicates)}")

        total = len(paths)
        if total == 0:
            logger.info("Empty batch, nothing to load")
            return []

        logger.info("Loading %d level(s)", total)
        tasks = [
            asyncio.create_task(self._load_one(path, fetch_raw), name=f"fetch:{path}")
            for path in paths
        ]
        results: List[LoadResult] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                results.append(result)
                if on_result is not None:
                    on_result(result)
        finally:
            # Only non-empty when load itself was cancelled or a callback raised.
            for task in tasks:
                if not task.done():
                    task.cancel()

        absent = sum(1 for r in results if r.data is None)
        logger.info("Loaded %d level(s), %d without data", total, absent)
        return results

    async def _load_one(self, path: LevelPath, fetch_raw: FetchRaw) -> LoadResult:
        try:
            if self._fetch_timeout is None:
                raw = await fetch_raw(path)
            else:
                raw = await asyncio.wait_for(fetch_raw(path), self._fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out fetching %s after %.1fs", path, self._fetch_timeout)
            error = FetchError(path, f"timed out after {self._fetch_timeout:.1f}s")
            return LoadResult(path=path, data=None, error=error)
        except Exception as e:
            logger.warning("Could not fetch %s: %s", path, e)
            error = e if isinstance(e, FetchError) else FetchError(path, str(e))
            return LoadResult(path=path, data=None, error=error)
        data, error = self._parser.parse_with_error(raw)
        return LoadResult(path=path, data=data, error=error)
