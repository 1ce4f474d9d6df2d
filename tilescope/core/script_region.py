"""Recover level data from the sentinel-delimited region of a level script.

Level scripts are free-form text that embed one loosely formatted object
literal between ``/*JSON-BEGIN*/`` and ``/*JSON-END*/``. The literal may use
bare keys and trailing commas, so it is normalized before strict decoding.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Protocol, Tuple

from tilescope.core.errors import LevelFormatError, NormalizationParseError, TilescopeError
from tilescope.core.levels import ParsedLevel

logger = logging.getLogger(__name__)

BEGIN_MARKER = "/*JSON-BEGIN*/"
END_MARKER = "/*JSON-END*/"

# Lazy match: the first end marker after the begin marker closes the region,
# even when it sits inside nested data. No bracket balancing is attempted.
_REGION_RE = re.compile(
    re.escape(BEGIN_MARKER) + r"\s?(.*?);?\s?" + re.escape(END_MARKER),
    re.DOTALL,
)
_BARE_KEY_RE = re.compile(r"(\w+):")
_TRAILING_COMMA_RE = re.compile(r",(?=\s*[}\]])")


class RegionExtractor(Protocol):
    def extract(self, text: str) -> Optional[str]:
        ...


class SentinelRegionExtractor:
    """Returns the body of the first sentinel region, or None."""

    def extract(self, text: str) -> Optional[str]:
        match = _REGION_RE.search(text)
        if match is None:
            return None
        return match.group(1)


def normalize(region: str) -> str:
    """Quote bare ``key:`` tokens and drop trailing commas before ``}``/``]``.

    Applying it to its own output changes nothing.
    """
    quoted = _BARE_KEY_RE.sub(r'"\1":', region)
    return _TRAILING_COMMA_RE.sub("", quoted)


class ScriptRegionParser:
    """Turns raw level script text into a ParsedLevel, or None when absent.

    Failures never propagate. They are logged, and ``parse_with_error``
    hands the error back to the caller together with the absent result.
    """

    def __init__(self, extractor: Optional[RegionExtractor] = None) -> None:
        self._extractor: RegionExtractor = extractor or SentinelRegionExtractor()

    def parse_payload(self, raw: Optional[str]) -> Optional[Dict[str, Any]]:
        """Decode the region to a plain dict without building the level model."""
        payload, _ = self._decode(raw)
        return payload

    def parse(self, raw: Optional[str]) -> Optional[ParsedLevel]:
        level, _ = self.parse_with_error(raw)
        return level

    def parse_with_error(
        self, raw: Optional[str]
    ) -> Tuple[Optional[ParsedLevel], Optional[TilescopeError]]:
        """Return ``(level, None)``, ``(None, error)``, or ``(None, None)`` when
        there is simply no level data."""
        payload, error = self._decode(raw)
        if payload is None:
            return None, error
        try:
            return ParsedLevel.from_dict(payload), None
        except LevelFormatError as e:
            logger.warning("Invalid level data: %s", e)
            return None, e

    def _decode(
        self, raw: Optional[str]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[TilescopeError]]:
        if not raw:
            logger.debug("No level data provided")
            return None, None

        region = self._extractor.extract(raw)
        if region is None:
            logger.debug("No %s...%s region found", BEGIN_MARKER, END_MARKER)
            return None, None

        normalized = normalize(region)
        try:
            payload = json.loads(normalized)
        except json.JSONDecodeError as e:
            error = NormalizationParseError(f"Could not decode level region: {e}", normalized)
            logger.warning("%s", error)
            return None, error

        if not isinstance(payload, dict):
            error = LevelFormatError(
                f"level region decoded to {type(payload).__name__}, expected an object"
            )
            logger.warning("%s", error)
            return None, error
        return payload, None
