"""
Chart samples and the pure (samples, width, height) -> ChartGeometry computation.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from shared.schemas import QueryResult

from ..timecode import parse_timecode
from .scales import BandScale, LinearScale, band_scale, even_ticks, nice_domain

# Inset reserved for axis labels
MARGIN = 55
# Band padding (inner and outer) between time slots
BAND_PADDING = 0.2
# Vertical pixels per y-axis tick
TICK_SPACING = 70
# Empty-data vertical domain
EMPTY_DOMAIN = (0.0, 1.0)


class ChartSample(BaseModel):
    """One plotted point; `seconds` is the parsed form of `time`."""

    model_config = ConfigDict(frozen=True)

    time: str
    value: float = Field(..., allow_inf_nan=False)
    seconds: int = Field(..., ge=0)

    @classmethod
    def from_entry(cls, time: str, value: Any) -> "ChartSample":
        """Build a sample, parsing the timecode. Raises FormatError on a bad time."""
        return cls(time=time, value=value, seconds=parse_timecode(time))


def samples_from_result(result: QueryResult) -> list[ChartSample]:
    """One sample per entry, in result order. Values are coerced to float."""
    return [ChartSample.from_entry(e.time, e.value) for e in result.entries]


def samples_from_pairs(pairs: Iterable[tuple[str, Any]]) -> list[ChartSample]:
    return [ChartSample.from_entry(time, value) for time, value in pairs]


@dataclass(frozen=True)
class ChartGeometry:
    """Scales and ticks for one (samples, width, height) snapshot."""

    width: float
    height: float
    x_band: BandScale
    y_scale: LinearScale
    ticks: tuple[float, ...]

    @property
    def y_max(self) -> float:
        """Pixel row of the value axis baseline."""
        return self.height - MARGIN


def y_domain(values: Sequence[float]) -> tuple[float, float]:
    """Niced [min, max]; [0, 1] without data; a flat series is widened by 1 each way."""
    if not values:
        lo, hi = EMPTY_DOMAIN
    else:
        lo, hi = min(values), max(values)
        if lo == hi:
            lo, hi = lo - 1, hi + 1
    return nice_domain(lo, hi)


def tick_count(height: float) -> int:
    return max(0, math.floor(height / TICK_SPACING))


def compute_geometry(samples: Sequence[ChartSample], width: float, height: float) -> ChartGeometry:
    """
    Horizontal band scale over the distinct time labels (input order) on
    [MARGIN + 10, width]; vertical niced linear scale on [height - MARGIN, MARGIN];
    floor(height / 70) ticks evenly spaced over the niced domain.
    """
    if width < 0 or height < 0:
        raise ValueError(f"Container size must be non-negative, got {width}x{height}")

    x_band = band_scale([s.time for s in samples], (MARGIN + 10, width), padding=BAND_PADDING)

    domain = y_domain([s.value for s in samples])
    y_scale = LinearScale(domain=domain, range=(height - MARGIN, MARGIN))

    return ChartGeometry(
        width=width,
        height=height,
        x_band=x_band,
        y_scale=y_scale,
        ticks=even_ticks(domain[0], domain[1], tick_count(height)),
    )
