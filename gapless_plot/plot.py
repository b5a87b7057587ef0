from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, ClassVar, Literal

import numpy as np

from gapless_plot.adapters import coerce_values, index_mapped
from gapless_plot.annotations import (
    Annotation,
    AnnotationIndexMapper,
    MappingOutcome,
    MarkerOrientation,
    ValueMarker,
    clone_annotation,
    clone_marker,
)
from gapless_plot.datasets import (
    OhlcvDataset,
    TimeKeyedDataset,
    TimeSeries,
    TimeSeriesCollection,
    VolumeDataset,
)
from gapless_plot.errors import ChartConfigurationError
from gapless_plot.scales import pad_range
from gapless_plot.time_index import TimeIndex

LOGGER = logging.getLogger(__name__)

PlotKind = Literal["xy", "ohlc", "volume"]


@dataclass(frozen=True)
class PlotBuildContext:
    time_index: TimeIndex
    show_time_gaps: bool
    mapper: AnnotationIndexMapper | None = None

    def __post_init__(self) -> None:
        if not self.show_time_gaps and self.mapper is None:
            raise ChartConfigurationError("gapless plots need an annotation index mapper")


@dataclass(frozen=True)
class BuiltPlot:
    kind: PlotKind
    y_label: str
    weight: int
    datasets: tuple[TimeKeyedDataset, ...]
    markers: tuple[ValueMarker, ...]
    annotations: tuple[Annotation, ...]
    mapping_outcomes: tuple[MappingOutcome, ...] | None
    y_limits: tuple[float, float]
    y_tick_step: float | None = None

    def domain_bounds(self) -> tuple[float, float] | None:
        lo: float | None = None
        hi: float | None = None
        for ds in self.datasets:
            bounds = ds.domain_bounds()
            if bounds is None:
                continue
            lo = bounds[0] if lo is None else min(lo, bounds[0])
            hi = bounds[1] if hi is None else max(hi, bounds[1])
        if lo is None or hi is None:
            return None
        return (lo, hi)


@dataclass
class TimeSeriesPlot:
    """Declarative sub-plot: series values aligned with the chart's time data.

    The declaration is never modified by a build, so the same plot can be built
    into charts of either mode.
    """

    y_axis_name: str = ""
    weight: int = 1
    y_range: tuple[float, float] | None = None
    y_tick_step: float | None = None
    show_time_gaps: bool | None = None

    _series: list[tuple[str, np.ndarray]] = field(default_factory=list, init=False, repr=False)
    _datasets: list[TimeKeyedDataset] = field(default_factory=list, init=False, repr=False)
    _markers: list[ValueMarker] = field(default_factory=list, init=False, repr=False)
    _annotations: list[Annotation] = field(default_factory=list, init=False, repr=False)

    kind: ClassVar[PlotKind] = "xy"

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError("plot weight must be > 0")
        if self.y_range is not None:
            self.set_y_range(*self.y_range)
        if self.y_tick_step is not None and self.y_tick_step <= 0:
            raise ValueError("y tick step must be > 0")

    def series(self, values: Any, *, name: str = "") -> "TimeSeriesPlot":
        self._series.append((name or "", coerce_values(values, label=name or "values")))
        return self

    def dataset(self, dataset: TimeKeyedDataset) -> "TimeSeriesPlot":
        self._datasets.append(dataset)
        return self

    def marker(self, value: float, *, orientation: MarkerOrientation = "horizontal", label: str = "") -> "TimeSeriesPlot":
        self._markers.append(ValueMarker(value=float(value), orientation=orientation, label=label))
        return self

    def annotation(self, annotation: Annotation) -> "TimeSeriesPlot":
        self._annotations.append(annotation)
        return self

    def set_y_range(self, lower: float, upper: float) -> "TimeSeriesPlot":
        if not (np.isfinite(lower) and np.isfinite(upper)):
            raise ValueError("y-axis range lower and upper must be finite")
        if lower >= upper:
            raise ValueError("y-axis range lower must be below upper")
        self.y_range = (float(lower), float(upper))
        return self

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return tuple(self._annotations)

    @property
    def markers(self) -> tuple[ValueMarker, ...]:
        return tuple(self._markers)

    def check_build_preconditions(self, time_index: TimeIndex) -> None:
        if not self._series and not self._datasets:
            raise ChartConfigurationError(f"{type(self).__name__} has no series configured")
        n = len(time_index)
        for name, values in self._series:
            if values.size != n:
                raise ChartConfigurationError(
                    f"series {name!r} has {values.size} values but the chart has {n} timestamps"
                )
        for ds in self._datasets:
            for s in range(ds.series_count()):
                if ds.item_count(s) != n:
                    raise ChartConfigurationError(
                        f"dataset {ds.series_key(s)!r} has {ds.item_count(s)} items but the chart has {n} timestamps"
                    )

    def build(self, context: PlotBuildContext) -> BuiltPlot:
        if self.show_time_gaps is not None and self.show_time_gaps != context.show_time_gaps:
            raise ChartConfigurationError(
                "sub-plot time gap mode differs from the chart's; every sub-plot shares one domain axis"
            )
        index = context.time_index
        self.check_build_preconditions(index)
        start, end = index.start, index.end

        datasets = [ds.window(start, end) for ds in self._source_datasets(index)]
        if not context.show_time_gaps:
            datasets = [index_mapped(ds) for ds in datasets]

        markers = tuple(clone_marker(m) for m in self._markers)
        annotations = tuple(clone_annotation(a) for a in self._annotations)
        outcomes: tuple[MappingOutcome, ...] | None = None
        if context.mapper is not None and not context.show_time_gaps:
            outcomes = tuple(context.mapper.map(a) for a in annotations)
            for m in markers:
                context.mapper.map_marker(m)

        return BuiltPlot(
            kind=self.kind,
            y_label=self._y_label(datasets),
            weight=self.weight,
            datasets=tuple(datasets),
            markers=markers,
            annotations=annotations,
            mapping_outcomes=outcomes,
            y_limits=self._y_limits(datasets, markers),
            y_tick_step=self.y_tick_step,
        )

    def _source_datasets(self, time_index: TimeIndex) -> list[TimeKeyedDataset]:
        out: list[TimeKeyedDataset] = []
        if self._series:
            out.append(
                TimeSeriesCollection(
                    [TimeSeries(name=name, timestamps=time_index.timestamps, values=values) for name, values in self._series]
                )
            )
        out.extend(self._datasets)
        return out

    def _y_label(self, datasets: list[TimeKeyedDataset]) -> str:
        parts = [self.y_axis_name]
        for ds in datasets:
            if ds.kind != "xy":
                continue
            for s in range(ds.series_count()):
                key = ds.series_key(s)
                if key:
                    parts.append(key)
        return " ".join(p for p in parts if p)

    def _y_limits(self, datasets: list[TimeKeyedDataset], markers: tuple[ValueMarker, ...]) -> tuple[float, float]:
        if self.y_range is not None:
            return self.y_range
        lows: list[float] = []
        highs: list[float] = []
        for ds in datasets:
            bounds = ds.y_bounds()
            if bounds is not None:
                lows.append(bounds[0])
                highs.append(bounds[1])
        for m in markers:
            if m.orientation == "horizontal":
                lows.append(m.value)
                highs.append(m.value)
        if not lows:
            LOGGER.warning("%s has no finite values in the visible range", type(self).__name__)
            return (0.0, 1.0)
        return pad_range(min(lows), max(highs))


@dataclass
class OhlcPlot(TimeSeriesPlot):
    """Price sub-plot: one OHLC dataset plus optional overlay series."""

    _ohlc: OhlcvDataset | None = field(default=None, init=False, repr=False)

    kind: ClassVar[PlotKind] = "ohlc"

    def ohlc(self, dataset: OhlcvDataset) -> "OhlcPlot":
        if self._ohlc is not None:
            raise ChartConfigurationError("more than one OHLC dataset added but only one can be plotted")
        self._ohlc = dataset
        return self

    def check_build_preconditions(self, time_index: TimeIndex) -> None:
        if self._ohlc is None:
            raise ChartConfigurationError("no OHLC dataset configured")
        if self._ohlc.item_count(0) != len(time_index):
            raise ChartConfigurationError(
                f"OHLC dataset has {self._ohlc.item_count(0)} items but the chart has {len(time_index)} timestamps"
            )
        if self._series or self._datasets:
            super().check_build_preconditions(time_index)

    def _source_datasets(self, time_index: TimeIndex) -> list[TimeKeyedDataset]:
        assert self._ohlc is not None
        return [self._ohlc, *super()._source_datasets(time_index)]


@dataclass
class VolumePlot(TimeSeriesPlot):
    """Volume bars; the y axis always starts at zero."""

    y_axis_name: str = "Vol"
    _volume: VolumeDataset | None = field(default=None, init=False, repr=False)

    kind: ClassVar[PlotKind] = "volume"

    def volume(self, dataset: VolumeDataset | OhlcvDataset) -> "VolumePlot":
        if self._volume is not None:
            raise ChartConfigurationError("more than one volume dataset added but only one can be plotted")
        if isinstance(dataset, OhlcvDataset):
            dataset = VolumeDataset.from_ohlcv(dataset)
        self._volume = dataset
        return self

    def check_build_preconditions(self, time_index: TimeIndex) -> None:
        if self._volume is None:
            raise ChartConfigurationError("no volume dataset configured")
        if self._volume.item_count(0) != len(time_index):
            raise ChartConfigurationError(
                f"volume dataset has {self._volume.item_count(0)} items but the chart has {len(time_index)} timestamps"
            )
        if self._series or self._datasets:
            super().check_build_preconditions(time_index)

    def _source_datasets(self, time_index: TimeIndex) -> list[TimeKeyedDataset]:
        assert self._volume is not None
        return [self._volume, *super()._source_datasets(time_index)]

    def _y_limits(self, datasets: list[TimeKeyedDataset], markers: tuple[ValueMarker, ...]) -> tuple[float, float]:
        if self.y_range is not None:
            return self.y_range
        bounds = datasets[0].y_bounds()
        top = bounds[1] if bounds is not None else 0.0
        return (0.0, top if top > 0.0 else 1.0)
