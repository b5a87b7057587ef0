from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import math

import numpy as np

from gapless_plot.adapters.normalize import coerce_timestamps
from gapless_plot.errors import ChartConfigurationError, PlotDataError


@dataclass(frozen=True)
class VisibleRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ChartConfigurationError(f"range start must be >= 0, got {self.start}")
        if self.end < 0:
            raise ChartConfigurationError(f"range end must be >= 0, got {self.end}")
        if self.start > self.end:
            raise ChartConfigurationError(f"range start {self.start} is greater than end {self.end}")

    @property
    def count(self) -> int:
        return self.end - self.start + 1

    def check_within(self, length: int) -> None:
        if self.end >= length:
            raise ChartConfigurationError(
                f"range end {self.end} is out of bounds for {length} timestamps"
            )


class TimeIndex:
    """Ascending millisecond timestamps plus the visible window plotted from them.

    Lookups assume ascending order. Nothing checks it here; out-of-order input makes
    binary search results undefined. Use ``is_ascending`` to flag suspicious data.
    """

    def __init__(self, timestamps: Any, visible: VisibleRange | tuple[int, int] | None = None) -> None:
        if timestamps is None:
            raise ChartConfigurationError("time data is required")
        try:
            arr = coerce_timestamps(timestamps)
        except PlotDataError as exc:
            raise ChartConfigurationError(f"invalid time data: {exc}") from exc
        if arr.size == 0:
            raise ChartConfigurationError("time data must not be empty")
        if visible is None:
            visible = VisibleRange(0, arr.size - 1)
        elif not isinstance(visible, VisibleRange):
            visible = VisibleRange(int(visible[0]), int(visible[1]))
        visible.check_within(arr.size)
        self._timestamps = arr
        self._visible = visible

    @property
    def timestamps(self) -> np.ndarray:
        return self._timestamps

    @property
    def visible(self) -> VisibleRange:
        return self._visible

    @property
    def start(self) -> int:
        return self._visible.start

    @property
    def end(self) -> int:
        return self._visible.end

    @property
    def visible_count(self) -> int:
        return self._visible.count

    def __len__(self) -> int:
        return int(self._timestamps.size)

    def is_ascending(self) -> bool:
        if self._timestamps.size < 2:
            return True
        return bool(np.all(np.diff(self._timestamps) > 0))

    def index_of(self, timestamp: float) -> int | None:
        if not math.isfinite(float(timestamp)):
            return None
        target = int(timestamp)
        lo = self.start
        hi = self.end + 1
        pos = lo + int(np.searchsorted(self._timestamps[lo:hi], target, side="left"))
        if pos < hi and int(self._timestamps[pos]) == target:
            return pos
        return None

    def ordinal_of(self, timestamp: float) -> int | None:
        pos = self.index_of(timestamp)
        if pos is None:
            return None
        return pos - self.start

    def at(self, ordinal: int) -> int | None:
        if ordinal < 0 or ordinal > self.end - self.start:
            return None
        return int(self._timestamps[self.start + ordinal])

    def absolute_at(self, absolute: int) -> int | None:
        if absolute < 0 or absolute >= self._timestamps.size:
            return None
        return int(self._timestamps[absolute])

    def ordinals(self) -> np.ndarray:
        return np.arange(self.visible_count, dtype=np.float64)

    def visible_timestamps(self) -> np.ndarray:
        return self._timestamps[self.start : self.end + 1]
