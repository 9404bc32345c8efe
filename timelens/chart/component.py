"""
TimeSeriesChart: holds the current (samples, width, height) snapshot, recomputes
geometry on data or container-size changes and turns time-label activation
into seek callbacks.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..timecode import parse_timecode
from .geometry import ChartGeometry, ChartSample, compute_geometry
from .render import ChartRender, render

SeekCallback = Callable[[int], None]


@dataclass(frozen=True)
class ChartSnapshot:
    samples: tuple[ChartSample, ...]
    width: float
    height: float
    geometry: ChartGeometry


class TimeSeriesChart:
    """
    Chart component driven by explicit notifications.

    `set_samples` and `resize` are the only ways to change what is drawn; both
    go through `_recompute`, which swaps in a complete snapshot, so a render
    never sees samples from one update and a size from another. Concurrent
    notifications must still be serialized by the host.
    """

    def __init__(
        self,
        on_seek: SeekCallback,
        y_label: str = "",
        samples: Iterable[ChartSample] = (),
        width: float = 1,
        height: float = 1,
    ):
        self._on_seek = on_seek
        self.y_label = y_label
        self._snapshot = self._recompute(tuple(samples), width, height)

    @property
    def snapshot(self) -> ChartSnapshot:
        return self._snapshot

    @property
    def geometry(self) -> ChartGeometry:
        return self._snapshot.geometry

    @property
    def samples(self) -> tuple[ChartSample, ...]:
        return self._snapshot.samples

    def set_samples(self, samples: Iterable[ChartSample]) -> ChartGeometry:
        current = self._snapshot
        self._snapshot = self._recompute(tuple(samples), current.width, current.height)
        return self._snapshot.geometry

    def resize(self, width: float, height: float) -> ChartGeometry:
        """Container size changed notification."""
        current = self._snapshot
        self._snapshot = self._recompute(current.samples, width, height)
        return self._snapshot.geometry

    def render(self) -> ChartRender:
        snapshot = self._snapshot
        return render(snapshot.geometry, snapshot.samples, self.y_label)

    def seek(self, time_label: str) -> int:
        """
        Time label activated: forward its offset in seconds to the host.
        Raises FormatError for a malformed label (the callback is not invoked).
        """
        seconds = parse_timecode(time_label)
        self._on_seek(seconds)
        return seconds

    def seek_index(self, index: int) -> Optional[int]:
        """Seek to the time label at `index` in the rendered order."""
        samples = self._snapshot.samples
        if not 0 <= index < len(samples):
            return None
        return self.seek(samples[index].time)

    @staticmethod
    def _recompute(samples: tuple[ChartSample, ...], width: float, height: float) -> ChartSnapshot:
        return ChartSnapshot(
            samples=samples,
            width=width,
            height=height,
            geometry=compute_geometry(samples, width, height),
        )
