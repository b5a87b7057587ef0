from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence

import numpy as np

from gapless_plot.adapters.normalize import coerce_timestamps, coerce_values, frame_timestamps, resolve_column
from gapless_plot.errors import PlotDataError


DatasetKind = Literal["xy", "ohlc", "volume"]


@dataclass(frozen=True)
class TimeSeries:
    name: str
    timestamps: np.ndarray
    values: np.ndarray

    def __post_init__(self) -> None:
        if self.timestamps.shape != self.values.shape:
            raise PlotDataError(
                f"time and value length mismatch for {self.name!r}: {self.timestamps.size} != {self.values.size}"
            )

    @property
    def mask(self) -> np.ndarray:
        return np.isfinite(self.values)

    def window(self, start: int, end: int) -> "TimeSeries":
        return TimeSeries(name=self.name, timestamps=self.timestamps[start : end + 1], values=self.values[start : end + 1])


def time_series(name: str, values: Any, *, timestamps: Any) -> TimeSeries:
    return TimeSeries(name=name or "", timestamps=coerce_timestamps(timestamps), values=coerce_values(values, label="values"))


class TimeKeyedDataset:
    """Datasets whose x value is the sample's millisecond timestamp.

    Extents are computed through ``x_position_of`` the way time-keyed collections
    locate a sample from its time period; index-mapped wrappers must override it.
    """

    kind: DatasetKind = "xy"

    def series_count(self) -> int:
        raise NotImplementedError

    def series_key(self, series: int) -> str:
        raise NotImplementedError

    def item_count(self, series: int) -> int:
        raise NotImplementedError

    def timestamps(self, series: int) -> np.ndarray:
        raise NotImplementedError

    def y_values(self, series: int) -> np.ndarray:
        raise NotImplementedError

    def window(self, start: int, end: int) -> "TimeKeyedDataset":
        raise NotImplementedError

    def timestamp(self, series: int, item: int) -> int:
        return int(self.timestamps(series)[item])

    def x_value(self, series: int, item: int) -> float:
        if item < 0 or item >= self.item_count(series):
            return float("nan")
        return float(self.timestamps(series)[item])

    def start_x_value(self, series: int, item: int) -> float:
        return self.x_value(series, item)

    def end_x_value(self, series: int, item: int) -> float:
        return self.x_value(series, item)

    def x_values(self, series: int) -> np.ndarray:
        return self.timestamps(series).astype(np.float64)

    def y_value(self, series: int, item: int) -> float:
        return float(self.y_values(series)[item])

    def mask(self, series: int) -> np.ndarray:
        return np.isfinite(self.y_values(series))

    def x_position_of(self, timestamp: int) -> float:
        return float(timestamp)

    def domain_bounds(self) -> tuple[float, float] | None:
        lo: float | None = None
        hi: float | None = None
        for s in range(self.series_count()):
            ts = self.timestamps(s)
            if ts.size == 0:
                continue
            first = self.x_position_of(int(ts[0]))
            last = self.x_position_of(int(ts[-1]))
            lo = first if lo is None else min(lo, first)
            hi = last if hi is None else max(hi, last)
        if lo is None or hi is None:
            return None
        return (lo, hi)

    def y_bounds(self) -> tuple[float, float] | None:
        lows: list[float] = []
        highs: list[float] = []
        for s in range(self.series_count()):
            y = self.y_values(s)
            m = np.isfinite(y)
            if not np.any(m):
                continue
            lows.append(float(np.min(y[m])))
            highs.append(float(np.max(y[m])))
        if not lows:
            return None
        return (min(lows), max(highs))


class TimeSeriesCollection(TimeKeyedDataset):
    kind: DatasetKind = "xy"

    def __init__(self, series: Sequence[TimeSeries] = ()) -> None:
        self._series: list[TimeSeries] = list(series)

    def add_series(self, series: TimeSeries) -> "TimeSeriesCollection":
        self._series.append(series)
        return self

    def series_count(self) -> int:
        return len(self._series)

    def series_key(self, series: int) -> str:
        return self._series[series].name

    def item_count(self, series: int) -> int:
        return int(self._series[series].timestamps.size)

    def timestamps(self, series: int) -> np.ndarray:
        return self._series[series].timestamps

    def y_values(self, series: int) -> np.ndarray:
        return self._series[series].values

    def window(self, start: int, end: int) -> "TimeSeriesCollection":
        return TimeSeriesCollection([s.window(start, end) for s in self._series])


class OhlcvDataset(TimeKeyedDataset):
    kind: DatasetKind = "ohlc"

    def __init__(
        self,
        name: str,
        *,
        timestamps: Any,
        open: Any,
        high: Any,
        low: Any,
        close: Any,
        volume: Any = None,
    ) -> None:
        self.name = name or ""
        self._timestamps = coerce_timestamps(timestamps)
        self._open = coerce_values(open, label="open")
        self._high = coerce_values(high, label="high")
        self._low = coerce_values(low, label="low")
        self._close = coerce_values(close, label="close")
        if volume is None:
            self._volume = np.full(self._timestamps.shape, np.nan, dtype=np.float64)
        else:
            self._volume = coerce_values(volume, label="volume")
        n = self._timestamps.size
        for label, arr in (
            ("open", self._open),
            ("high", self._high),
            ("low", self._low),
            ("close", self._close),
            ("volume", self._volume),
        ):
            if arr.size != n:
                raise PlotDataError(f"time and {label} length mismatch: {n} != {arr.size}")

    @classmethod
    def from_frame(cls, data: Any, *, name: str = "") -> "OhlcvDataset":
        try:
            volume = resolve_column(data, "volume")
        except PlotDataError:
            volume = None
        return cls(
            name,
            timestamps=frame_timestamps(data),
            open=resolve_column(data, "open"),
            high=resolve_column(data, "high"),
            low=resolve_column(data, "low"),
            close=resolve_column(data, "close"),
            volume=volume,
        )

    def series_count(self) -> int:
        return 1

    def series_key(self, series: int) -> str:
        return self.name

    def item_count(self, series: int) -> int:
        return int(self._timestamps.size)

    def timestamps(self, series: int) -> np.ndarray:
        return self._timestamps

    def y_values(self, series: int) -> np.ndarray:
        return self._close

    def mask(self, series: int) -> np.ndarray:
        return np.isfinite(self._open) & np.isfinite(self._high) & np.isfinite(self._low) & np.isfinite(self._close)

    def y_bounds(self) -> tuple[float, float] | None:
        m = self.mask(0)
        if not np.any(m):
            return None
        return (float(np.min(self._low[m])), float(np.max(self._high[m])))

    def open_value(self, series: int, item: int) -> float:
        return float(self._open[item])

    def high_value(self, series: int, item: int) -> float:
        return float(self._high[item])

    def low_value(self, series: int, item: int) -> float:
        return float(self._low[item])

    def close_value(self, series: int, item: int) -> float:
        return float(self._close[item])

    def volume_value(self, series: int, item: int) -> float:
        return float(self._volume[item])

    def ohlc_arrays(self, series: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        return (self._open, self._high, self._low, self._close)

    def volumes(self) -> np.ndarray:
        return self._volume

    def window(self, start: int, end: int) -> "OhlcvDataset":
        sl = slice(start, end + 1)
        return OhlcvDataset(
            self.name,
            timestamps=self._timestamps[sl],
            open=self._open[sl],
            high=self._high[sl],
            low=self._low[sl],
            close=self._close[sl],
            volume=self._volume[sl],
        )


class VolumeDataset(TimeKeyedDataset):
    """Volume bars taken from an OHLCV dataset; ``up`` marks samples closing at or above the open."""

    kind: DatasetKind = "volume"

    def __init__(self, name: str, *, timestamps: Any, volume: Any, up: Any) -> None:
        self.name = name or ""
        self._timestamps = coerce_timestamps(timestamps)
        self._volume = coerce_values(volume, label="volume")
        self._up = np.asarray(up, dtype=bool)
        if self._volume.size != self._timestamps.size or self._up.size != self._timestamps.size:
            raise PlotDataError(
                f"time and volume length mismatch: {self._timestamps.size} != {self._volume.size}"
            )

    @classmethod
    def from_ohlcv(cls, ohlcv: OhlcvDataset, *, name: str = "volume") -> "VolumeDataset":
        opens, _, _, closes = ohlcv.ohlc_arrays(0)
        return cls(name, timestamps=ohlcv.timestamps(0), volume=ohlcv.volumes(), up=opens <= closes)

    def series_count(self) -> int:
        return 1

    def series_key(self, series: int) -> str:
        return self.name

    def item_count(self, series: int) -> int:
        return int(self._timestamps.size)

    def timestamps(self, series: int) -> np.ndarray:
        return self._timestamps

    def y_values(self, series: int) -> np.ndarray:
        return self._volume

    def volume_value(self, series: int, item: int) -> float:
        return float(self._volume[item])

    def is_up(self, series: int, item: int) -> bool:
        return bool(self._up[item])

    def up_mask(self, series: int) -> np.ndarray:
        return self._up

    def y_bounds(self) -> tuple[float, float] | None:
        bounds = super().y_bounds()
        if bounds is None:
            return None
        return (0.0, max(0.0, bounds[1]))

    def window(self, start: int, end: int) -> "VolumeDataset":
        sl = slice(start, end + 1)
        return VolumeDataset(self.name, timestamps=self._timestamps[sl], volume=self._volume[sl], up=self._up[sl])
