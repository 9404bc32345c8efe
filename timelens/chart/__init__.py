"""
Timecode-indexed line chart: scales, geometry, render description and the
interactive component.
"""
from .component import ChartSnapshot, TimeSeriesChart
from .geometry import (
    MARGIN,
    ChartGeometry,
    ChartSample,
    compute_geometry,
    samples_from_pairs,
    samples_from_result,
)
from .render import ChartRender, render
from .scales import BandScale, LinearScale

__all__ = [
    "MARGIN",
    "BandScale",
    "ChartGeometry",
    "ChartRender",
    "ChartSample",
    "ChartSnapshot",
    "LinearScale",
    "TimeSeriesChart",
    "compute_geometry",
    "render",
    "samples_from_pairs",
    "samples_from_result",
]
