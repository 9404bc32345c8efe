"""
Band and linear scales with d3-scale semantics (band padding/align, linear nice()).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _round_half_up(x: float) -> int:
    # JavaScript Math.round semantics; Python's round() is banker's rounding
    return math.floor(x + 0.5)


def _tick_spec(start: float, stop: float, count: float) -> tuple[int, int, float]:
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / (10 ** power)
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        inc = 10 ** -power / factor
        i1 = _round_half_up(start * inc)
        i2 = _round_half_up(stop * inc)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = 10 ** power * factor
        i1 = _round_half_up(start / inc)
        i2 = _round_half_up(stop / inc)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1
    if i2 < i1 and 0.5 <= count < 2:
        return _tick_spec(start, stop, count * 2)
    return i1, i2, inc


def tick_increment(start: float, stop: float, count: int) -> float:
    """
    Round tick step for [start, stop] (start < stop). Positive values are the
    step itself; negative values -k mean a step of 1/k.
    """
    return _tick_spec(start, stop, count)[2]


def nice_domain(start: float, stop: float, count: int = 10) -> tuple[float, float]:
    """Extend [start, stop] outward to round values (d3 linear.nice)."""
    if start == stop:
        return start, stop
    reverse = stop < start
    if reverse:
        start, stop = stop, start

    prestep: Optional[float] = None
    for _ in range(10):
        # d3 leaves the domain as is when no finite step exists
        if count <= 0 or not math.isfinite(stop - start) or (stop - start) / count == 0:
            break
        step = tick_increment(start, stop, count)
        if step == prestep:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step

    # +0.0 turns -0.0 into 0.0
    start, stop = start + 0.0, stop + 0.0
    return (stop, start) if reverse else (start, stop)


def even_ticks(start: float, stop: float, count: int) -> tuple[float, ...]:
    """Exactly `count` ticks evenly spaced from start to stop inclusive."""
    if count <= 0:
        return ()
    if count == 1:
        return (_clean(start),)
    last = count - 1
    # stop - start may overflow
    return tuple(_clean(start * (1 - i / last) + stop * (i / last)) for i in range(count))


def _clean(x: float) -> float:
    return round(x, 10) + 0.0


@dataclass(frozen=True)
class LinearScale:
    """Continuous value -> pixel mapping."""

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)


@dataclass(frozen=True)
class BandScale:
    """Categorical label -> band start pixel, equal-width bands with padding."""

    domain: tuple[str, ...]
    range: tuple[float, float]
    step: float
    bandwidth: float
    positions: tuple[float, ...]
    _index: dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __call__(self, label: str) -> Optional[float]:
        i = self._index.get(label)
        return None if i is None else self.positions[i]


def band_scale(
    labels: Sequence[str],
    range_: tuple[float, float],
    padding: float = 0.2,
    align: float = 0.5,
) -> BandScale:
    """
    Build a band scale (d3 scaleBand().padding(padding)); duplicate labels keep
    their first position.
    """
    domain: list[str] = []
    index: dict[str, int] = {}
    for label in labels:
        if label not in index:
            index[label] = len(domain)
            domain.append(label)

    n = len(domain)
    r0, r1 = range_
    reverse = r1 < r0
    start, stop = (r1, r0) if reverse else (r0, r1)
    step = (stop - start) / max(1, n - padding + padding * 2)
    start += (stop - start - step * (n - padding)) * align
    positions = [start + step * i for i in range(n)]
    if reverse:
        positions.reverse()

    return BandScale(
        domain=tuple(domain),
        range=(r0, r1),
        step=step,
        bandwidth=step * (1 - padding),
        positions=tuple(positions),
        _index=index,
    )
