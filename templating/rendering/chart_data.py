#!/usr/bin/env python3
"""
Chart data builder.

Turns a metric's reference ranges and the client value into a ChartSpec:
one horizontal bar per range (left = Low, width = High - Low) colored from
the palette, plus one marker at the client value. Pure data, no drawing.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from templating.core.palette import RangeColor, lookup_color

if TYPE_CHECKING:
    from templating.pipeline.catalogs import Range

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartBar:
    """
    One band of the stacked reference bar.

    Attributes:
        label: Legend label (e.g. "Optimal")
        left: Start of the band (range Low)
        width: Band width (range High - Low)
        color: Palette color, or None to draw an unfilled outline
    """
    label: str
    left: float
    width: float
    color: Optional[RangeColor]

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass(frozen=True)
class ChartSpec:
    """Everything the renderer needs for one metric."""
    metric: str
    value: float
    bars: Tuple[ChartBar, ...]

    @property
    def widths(self) -> Tuple[float, ...]:
        return tuple(bar.width for bar in self.bars)

    @property
    def x_limits(self) -> Tuple[float, float]:
        """Axis span covering every band and the marker, with a small pad."""
        lo = min([bar.left for bar in self.bars] + [self.value])
        hi = max([bar.right for bar in self.bars] + [self.value])
        pad = (hi - lo) * 0.05 or 1.0
        return lo - pad, hi + pad


def build_chart_spec(metric: str, value: float, ranges: Sequence[Range]) -> ChartSpec:
    """
    Build the chart specification for one metric.

    Ranges with a NaN bound or a negative width cannot be drawn and are
    dropped with a warning; the remaining order is kept.

    Args:
        metric: Display name of the metric (e.g. "Ferritin")
        value: Client value (finite)
        ranges: Ordered ranges from the range catalog

    Returns:
        ChartSpec

    Raises:
        ValueError: If the value is not finite or no drawable range is left
    """
    if not math.isfinite(value):
        raise ValueError(f"{metric}: client value is not a number")

    bars = []
    for rng in ranges:
        if not rng.is_finite or rng.width < 0:
            LOGGER.warning("%s: skipping range '%s' [%s, %s]",
                           metric, rng.label, rng.low, rng.high)
            continue
        bars.append(ChartBar(rng.label, rng.low, rng.width, lookup_color(rng.color)))

    if not bars:
        raise ValueError(f"{metric}: no drawable range")
    return ChartSpec(metric=metric, value=float(value), bars=tuple(bars))
