"""
Rendering layer: range chart data and PNG rendering.
"""

from .chart_data import ChartBar, ChartSpec, build_chart_spec
from .range_chart import render_range_chart

__all__ = [
    'ChartBar',
    'ChartSpec',
    'build_chart_spec',
    'render_range_chart',
]
