#!/usr/bin/env python3
"""
Range chart renderer.

Pure function from ChartSpec to PNG bytes. Each call draws on its own
matplotlib Figure with an Agg canvas, so nothing is shared between charts
and no pyplot state is involved. PNG metadata is stripped so the same spec
always yields the same bytes.
"""
from __future__ import annotations

import io
import logging

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from templating.core.errors import RenderFailure
from templating.rendering.chart_data import ChartSpec

LOGGER = logging.getLogger(__name__)

# ============================================================================
# RENDER CONFIGURATION
# ============================================================================
DEFAULT_WIDTH_IN = 6.0
DEFAULT_HEIGHT_IN = 1.4
DEFAULT_DPI = 150
DEFAULT_MARKER_COLOR = "#2c3e50"
OUTLINE_COLOR = "#7f8c8d"
BAR_HEIGHT = 0.6


def render_range_chart(spec: ChartSpec,
                       width_in: float = DEFAULT_WIDTH_IN,
                       height_in: float = DEFAULT_HEIGHT_IN,
                       dpi: int = DEFAULT_DPI,
                       marker_color: str = DEFAULT_MARKER_COLOR) -> bytes:
    """
    Render a horizontal range chart to PNG.

    Args:
        spec: Chart specification (bands + client value)
        width_in: Figure width in inches
        height_in: Figure height in inches
        dpi: Resolution
        marker_color: Color of the client value marker

    Returns:
        PNG image bytes

    Raises:
        RenderFailure: If matplotlib fails to draw or encode the figure
    """
    try:
        fig = Figure(figsize=(width_in, height_in), dpi=dpi)
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(1, 1, 1)

        for bar in spec.bars:
            if bar.color is None:
                # Unknown color: outline only.
                ax.barh(0, bar.width, left=bar.left, height=BAR_HEIGHT, fill=False,
                        edgecolor=OUTLINE_COLOR, linestyle="--", label=bar.label)
            else:
                ax.barh(0, bar.width, left=bar.left, height=BAR_HEIGHT,
                        color=bar.color.rgba, edgecolor="white", label=bar.label)

        ax.plot([spec.value], [0], marker="D", markersize=9, color=marker_color,
                linestyle="none", label=f"Your value ({spec.value:g})")
        ax.axvline(spec.value, color=marker_color, linewidth=1.2)

        ax.set_xlim(*spec.x_limits)
        ax.set_ylim(-0.6, 0.6)
        ax.set_yticks([0])
        ax.set_yticklabels([spec.metric])
        ax.grid(axis="x", alpha=0.3, linestyle="--")
        ax.set_axisbelow(True)
        for side in ("top", "right", "left"):
            ax.spines[side].set_visible(False)
        ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.35),
                  ncol=len(spec.bars) + 1, fontsize=7, frameon=False)

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight",
                    metadata={"Software": None})
    except Exception as e:
        raise RenderFailure(spec.metric, str(e)) from e

    data = buf.getvalue()
    LOGGER.debug("Rendered chart %s (%.1f KB)", spec.metric, len(data) / 1024)
    return data
