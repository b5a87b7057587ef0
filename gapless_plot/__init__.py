from gapless_plot.annotations import (
    AnnotationIndexMapper,
    BoxAnnotation,
    DataImageAnnotation,
    LineAnnotation,
    OpaqueShapeAnnotation,
    PointAnnotation,
    PolygonAnnotation,
    TitleAnnotation,
    ValueMarker,
)
from gapless_plot.api import candlestick_chart, chart
from gapless_plot.axis import DateTimeAxis, IndexSpaceAxis
from gapless_plot.chart import ChartBuilder, CompositeChart
from gapless_plot.config import ChartConfig, load_chart_config
from gapless_plot.datasets import OhlcvDataset, TimeSeries, TimeSeriesCollection, VolumeDataset
from gapless_plot.date_format import MinimalDateFormat, PatternDateFormat
from gapless_plot.errors import ChartConfigurationError, ChartStateError, PlotDataError
from gapless_plot.plot import OhlcPlot, TimeSeriesPlot, VolumePlot
from gapless_plot.time_index import TimeIndex, VisibleRange

__all__ = [
    "AnnotationIndexMapper",
    "BoxAnnotation",
    "ChartBuilder",
    "ChartConfig",
    "ChartConfigurationError",
    "ChartStateError",
    "CompositeChart",
    "DataImageAnnotation",
    "DateTimeAxis",
    "IndexSpaceAxis",
    "LineAnnotation",
    "MinimalDateFormat",
    "OhlcPlot",
    "OhlcvDataset",
    "OpaqueShapeAnnotation",
    "PatternDateFormat",
    "PlotDataError",
    "PointAnnotation",
    "PolygonAnnotation",
    "TimeIndex",
    "TimeSeries",
    "TimeSeriesCollection",
    "TimeSeriesPlot",
    "TitleAnnotation",
    "ValueMarker",
    "VisibleRange",
    "VolumeDataset",
    "VolumePlot",
    "candlestick_chart",
    "chart",
    "load_chart_config",
]
