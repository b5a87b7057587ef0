from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Literal

from gapless_plot.annotations import AnnotationIndexMapper
from gapless_plot.axis import DateTimeAxis, DomainAxis, IndexSpaceAxis
from gapless_plot.config import ChartConfig, default_chart_config
from gapless_plot.date_format import DateLabelFormatter
from gapless_plot.errors import ChartConfigurationError, ChartStateError
from gapless_plot.layout import ChartLayout, Crosshair, HitResult, compute_layout, crosshair, hit_test
from gapless_plot.plot import BuiltPlot, PlotBuildContext, TimeSeriesPlot
from gapless_plot.time_index import TimeIndex, VisibleRange

LOGGER = logging.getLogger(__name__)

BuildState = Literal["unconfigured", "mode_chosen", "built"]
RenderingMode = Literal["gapped", "gapless"]


@dataclass(frozen=True)
class CompositeChart:
    """Sub-plots stacked vertically over one shared domain axis."""

    title: str
    mode: RenderingMode
    time_index: TimeIndex
    domain_axis: DomainAxis
    subplots: tuple[BuiltPlot, ...]
    config: ChartConfig

    @property
    def show_time_gaps(self) -> bool:
        return self.mode == "gapped"

    def layout(self, width: int, height: int) -> ChartLayout:
        return compute_layout(self, width, height)

    def hit_test(self, px: float, py: float, *, width: int, height: int) -> HitResult | None:
        return hit_test(self, self.layout(width, height), px, py)

    def crosshair(self, px: float, *, width: int, height: int) -> Crosshair | None:
        return crosshair(self, self.layout(width, height), px)


class ChartBuilder:
    """Chooses between the gapped and gapless rendering of a composite chart.

    In gapless mode the shared domain axis becomes an ``IndexSpaceAxis``, every
    sub-plot dataset is wrapped for index mapping and every annotation is
    rewritten through one ``AnnotationIndexMapper``. Gapped mode uses a native
    calendar axis and leaves data untouched. A builder produces exactly one chart.
    """

    def __init__(self, config: ChartConfig | None = None) -> None:
        self.config = config if config is not None else default_chart_config()
        self._state: BuildState = "unconfigured"
        self._title = ""
        self._timestamps: Any = None
        self._visible: VisibleRange | None = None
        self._formatter: DateLabelFormatter | None = None
        self._show_time_gaps: bool | None = None
        self._plots: list[TimeSeriesPlot] = []

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def mode(self) -> RenderingMode:
        return "gapped" if self._resolved_show_time_gaps() else "gapless"

    def title(self, title: str) -> "ChartBuilder":
        self._require_not_built()
        self._title = title or ""
        return self

    def time_data(self, timestamps: Any) -> "ChartBuilder":
        self._require_not_built()
        self._timestamps = timestamps
        return self

    def index_range(self, start: int, end: int) -> "ChartBuilder":
        self._require_not_built()
        self._visible = VisibleRange(int(start), int(end))
        return self

    def date_format(self, formatter: DateLabelFormatter) -> "ChartBuilder":
        self._require_not_built()
        self._formatter = formatter
        return self

    def show_time_gaps(self, show: bool) -> "ChartBuilder":
        self._require_not_built()
        self._show_time_gaps = bool(show)
        self._state = "mode_chosen"
        return self

    def plot(self, plot: TimeSeriesPlot) -> "ChartBuilder":
        self._require_not_built()
        self._plots.append(plot)
        return self

    def build(self) -> CompositeChart:
        self._require_not_built()
        if not self._plots:
            raise ChartConfigurationError("no plots configured")
        show_time_gaps = self._resolved_show_time_gaps()
        time_index = TimeIndex(self._timestamps, self._visible)
        if not time_index.is_ascending():
            LOGGER.warning("time data is not in ascending order; lookups and index mapping may be wrong")

        tz = self.config.timezone
        mapper: AnnotationIndexMapper | None = None
        if show_time_gaps:
            axis: DomainAxis = DateTimeAxis(time_index, self._formatter, tz=tz)
        else:
            axis = IndexSpaceAxis(time_index, self._formatter, month_chars=self.config.month_chars, tz=tz)
            mapper = AnnotationIndexMapper(time_index)

        context = PlotBuildContext(time_index=time_index, show_time_gaps=show_time_gaps, mapper=mapper)
        subplots = tuple(plot.build(context) for plot in self._plots)

        chart = CompositeChart(
            title=self._title,
            mode="gapped" if show_time_gaps else "gapless",
            time_index=time_index,
            domain_axis=axis,
            subplots=subplots,
            config=self.config,
        )
        self._state = "built"
        LOGGER.debug(
            "built %s chart with %d sub-plots over samples [%d, %d]",
            chart.mode,
            len(subplots),
            time_index.start,
            time_index.end,
        )
        return chart

    def _resolved_show_time_gaps(self) -> bool:
        if self._show_time_gaps is not None:
            return self._show_time_gaps
        return self.config.show_time_gaps

    def _require_not_built(self) -> None:
        if self._state == "built":
            raise ChartStateError("chart already built; create a new builder to build another chart")
