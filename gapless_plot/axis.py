from __future__ import annotations

import datetime as dt
from typing import Literal, Sequence

import math

import numpy as np

from gapless_plot.date_format import DEFAULT_MONTH_CHARS, DateLabelFormatter, MinimalDateFormat, PatternDateFormat, resolve_timezone
from gapless_plot.scales import generate_index_ticks, generate_time_ticks
from gapless_plot.time_index import TimeIndex


AxisKind = Literal["ordinal", "time"]


class IndexSpaceAxis:
    """Shared domain axis whose values are ordinal positions in the visible window.

    Tick labels are resolved by looking the ordinal up in the time index, so
    samples sit at uniform spacing while the labels still read as dates.
    """

    kind: AxisKind = "ordinal"

    def __init__(
        self,
        time_index: TimeIndex,
        formatter: DateLabelFormatter | None = None,
        *,
        month_chars: int = DEFAULT_MONTH_CHARS,
        tz: dt.tzinfo | str | None = None,
    ) -> None:
        self.time_index = time_index
        self.formatter: DateLabelFormatter = formatter if formatter is not None else MinimalDateFormat(month_chars, tz=tz)

    def format(self, ordinal_tick: float) -> str:
        value = float(ordinal_tick)
        if not math.isfinite(value) or value < 0.0:
            return ""
        absolute = self.time_index.start + int(math.floor(value))
        timestamp = self.time_index.absolute_at(absolute)
        if timestamp is None:
            return ""
        return self.formatter.format(timestamp)

    def format_ticks(self, ticks: Sequence[float] | np.ndarray) -> list[str]:
        self.formatter.reset()
        return [self.format(float(t)) for t in ticks]

    def data_bounds(self) -> tuple[float, float]:
        return (0.0, float(self.time_index.visible_count - 1))

    def ticks(self, vmin: float, vmax: float, target: int) -> np.ndarray:
        lo, hi = self.data_bounds()
        return generate_index_ticks(max(lo, vmin), min(hi, vmax), target)

    def nearest_ordinal(self, x: float) -> int | None:
        if not math.isfinite(x):
            return None
        last = self.time_index.visible_count - 1
        return int(min(max(round(x), 0), last))

    def to_axis_value(self, ordinal: int) -> float:
        return float(ordinal)


class DateTimeAxis:
    """Native calendar axis: domain values are epoch milliseconds, gaps included."""

    kind: AxisKind = "time"

    def __init__(
        self,
        time_index: TimeIndex,
        formatter: DateLabelFormatter | None = None,
        *,
        tz: dt.tzinfo | str | None = None,
    ) -> None:
        self.time_index = time_index
        self.tz = resolve_timezone(tz)
        self.formatter: DateLabelFormatter = formatter if formatter is not None else PatternDateFormat("%b %d", tz=self.tz)

    def format(self, timestamp_tick: float) -> str:
        value = float(timestamp_tick)
        if not math.isfinite(value):
            return ""
        return self.formatter.format(int(value))

    def format_ticks(self, ticks: Sequence[float] | np.ndarray) -> list[str]:
        self.formatter.reset()
        return [self.format(float(t)) for t in ticks]

    def data_bounds(self) -> tuple[float, float]:
        visible = self.time_index.visible_timestamps()
        return (float(visible[0]), float(visible[-1]))

    def ticks(self, vmin: float, vmax: float, target: int) -> np.ndarray:
        return generate_time_ticks(vmin, vmax, target, tz=self.tz)

    def nearest_ordinal(self, x: float) -> int | None:
        if not math.isfinite(x):
            return None
        visible = self.time_index.visible_timestamps()
        pos = int(np.searchsorted(visible, x, side="left"))
        if pos <= 0:
            return 0
        if pos >= visible.size:
            return int(visible.size - 1)
        before = float(visible[pos - 1])
        after = float(visible[pos])
        return pos - 1 if (x - before) <= (after - x) else pos

    def to_axis_value(self, ordinal: int) -> float:
        timestamp = self.time_index.at(ordinal)
        return float("nan") if timestamp is None else float(timestamp)


DomainAxis = IndexSpaceAxis | DateTimeAxis
