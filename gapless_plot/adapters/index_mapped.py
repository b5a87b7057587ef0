from __future__ import annotations

import numpy as np

from gapless_plot.datasets import DatasetKind, TimeKeyedDataset


class IndexMappedDataset(TimeKeyedDataset):
    """View of a time-keyed dataset whose x value is the item's array position.

    Only the x accessors change. Every accessor that would locate a sample from
    its timestamp is overridden to use the array index instead; anything left on
    the time-keyed default would put elapsed-time spacing back on the axis.
    """

    def __init__(self, wrapped: TimeKeyedDataset) -> None:
        if isinstance(wrapped, IndexMappedDataset):
            raise TypeError("dataset is already index mapped")
        self._wrapped = wrapped

    @property
    def kind(self) -> DatasetKind:  # type: ignore[override]
        return self._wrapped.kind

    @property
    def wrapped(self) -> TimeKeyedDataset:
        return self._wrapped

    @property
    def name(self) -> str:
        return getattr(self._wrapped, "name", "")

    def x_value(self, series: int, item: int) -> float:
        if item < 0 or item >= self.item_count(series):
            return float("nan")
        return float(item)

    def start_x_value(self, series: int, item: int) -> float:
        return self.x_value(series, item)

    def end_x_value(self, series: int, item: int) -> float:
        return self.x_value(series, item)

    def x_values(self, series: int) -> np.ndarray:
        return np.arange(self.item_count(series), dtype=np.float64)

    def x_position_of(self, timestamp: int) -> float:
        # All series share the chart's time data, so series 0 stands in for the rest.
        if self.series_count() == 0:
            return float("nan")
        ts = self._wrapped.timestamps(0)
        pos = int(np.searchsorted(ts, int(timestamp), side="left"))
        if pos < ts.size and int(ts[pos]) == int(timestamp):
            return self.x_value(0, pos)
        return float("nan")

    def domain_bounds(self) -> tuple[float, float] | None:
        counts = [self.item_count(s) for s in range(self.series_count())]
        counts = [c for c in counts if c > 0]
        if not counts:
            return None
        return (0.0, float(max(counts) - 1))

    def window(self, start: int, end: int) -> "IndexMappedDataset":
        return IndexMappedDataset(self._wrapped.window(start, end))

    # Pass-through accessors.

    def series_count(self) -> int:
        return self._wrapped.series_count()

    def series_key(self, series: int) -> str:
        return self._wrapped.series_key(series)

    def item_count(self, series: int) -> int:
        return self._wrapped.item_count(series)

    def timestamps(self, series: int) -> np.ndarray:
        return self._wrapped.timestamps(series)

    def timestamp(self, series: int, item: int) -> int:
        return self._wrapped.timestamp(series, item)

    def y_values(self, series: int) -> np.ndarray:
        return self._wrapped.y_values(series)

    def y_value(self, series: int, item: int) -> float:
        return self._wrapped.y_value(series, item)

    def mask(self, series: int) -> np.ndarray:
        return self._wrapped.mask(series)

    def y_bounds(self) -> tuple[float, float] | None:
        return self._wrapped.y_bounds()

    def open_value(self, series: int, item: int) -> float:
        return self._wrapped.open_value(series, item)  # type: ignore[attr-defined]

    def high_value(self, series: int, item: int) -> float:
        return self._wrapped.high_value(series, item)  # type: ignore[attr-defined]

    def low_value(self, series: int, item: int) -> float:
        return self._wrapped.low_value(series, item)  # type: ignore[attr-defined]

    def close_value(self, series: int, item: int) -> float:
        return self._wrapped.close_value(series, item)  # type: ignore[attr-defined]

    def volume_value(self, series: int, item: int) -> float:
        return self._wrapped.volume_value(series, item)  # type: ignore[attr-defined]

    def ohlc_arrays(self, series: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        return self._wrapped.ohlc_arrays(series)  # type: ignore[attr-defined]

    def is_up(self, series: int, item: int) -> bool:
        return self._wrapped.is_up(series, item)  # type: ignore[attr-defined]

    def up_mask(self, series: int) -> np.ndarray:
        return self._wrapped.up_mask(series)  # type: ignore[attr-defined]


def index_mapped(dataset: TimeKeyedDataset) -> IndexMappedDataset:
    if isinstance(dataset, IndexMappedDataset):
        return dataset
    return IndexMappedDataset(dataset)
