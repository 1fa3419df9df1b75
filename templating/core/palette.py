#!/usr/bin/env python3
"""
Range chart color palette.

Provides:
- RangeColor: closed enumeration of the colors a range row may name
- lookup_color(): color-name cell → RangeColor, or None for unknown names

Unknown names fail closed: the caller gets None and draws the band without
fill instead of guessing a style.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Tuple

LOGGER = logging.getLogger(__name__)


# ============================================================================
# COLOR ENUMERATION
# ============================================================================
class RangeColor(Enum):
    """
    Colors available to range bands.

    Values are RGBA tuples (0-1 floats) as matplotlib expects them; the
    alpha keeps the bands translucent so the value marker stays readable.
    """
    RED = (231 / 255, 76 / 255, 60 / 255, 0.45)
    YELLOW = (241 / 255, 196 / 255, 15 / 255, 0.45)
    GREEN = (46 / 255, 204 / 255, 113 / 255, 0.45)

    @property
    def rgba(self) -> Tuple[float, float, float, float]:
        return self.value

    @property
    def label(self) -> str:
        return self.name.capitalize()


def lookup_color(name: Optional[str]) -> Optional[RangeColor]:
    """
    Resolve a color-name cell to a RangeColor.

    Matching is case-insensitive and ignores surrounding whitespace.

    Args:
        name: Raw cell text (e.g. "Green", " yellow ")

    Returns:
        RangeColor, or None when the name is empty or not in the palette
    """
    key = (name or "").strip().upper()
    if not key:
        return None
    try:
        return RangeColor[key]
    except KeyError:
        LOGGER.warning("Unknown range color '%s' (known: %s)", name,
                       ", ".join(c.label for c in RangeColor))
        return None
