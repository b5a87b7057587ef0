from __future__ import annotations

from typing import Any

from gapless_plot.chart import ChartBuilder, CompositeChart
from gapless_plot.config import ChartConfig
from gapless_plot.datasets import OhlcvDataset
from gapless_plot.plot import OhlcPlot, VolumePlot


def chart(
    timestamps: Any = None,
    *,
    title: str = "",
    show_time_gaps: bool | None = None,
    index_range: tuple[int, int] | None = None,
    config: ChartConfig | None = None,
) -> ChartBuilder:
    builder = ChartBuilder(config)
    if title:
        builder.title(title)
    if timestamps is not None:
        builder.time_data(timestamps)
    if index_range is not None:
        builder.index_range(*index_range)
    if show_time_gaps is not None:
        builder.show_time_gaps(show_time_gaps)
    return builder


def candlestick_chart(
    data: OhlcvDataset | Any,
    *,
    title: str = "",
    show_time_gaps: bool | None = None,
    index_range: tuple[int, int] | None = None,
    volume: bool = True,
    config: ChartConfig | None = None,
) -> CompositeChart:
    """Price and volume sub-plots over one shared axis, built from OHLCV data or a DataFrame."""
    ohlcv = data if isinstance(data, OhlcvDataset) else OhlcvDataset.from_frame(data)
    builder = chart(
        ohlcv.timestamps(0),
        title=title or ohlcv.name,
        show_time_gaps=show_time_gaps,
        index_range=index_range,
        config=config,
    )
    builder.plot(OhlcPlot(y_axis_name="Price", weight=3).ohlc(ohlcv))
    if volume:
        builder.plot(VolumePlot(weight=1).volume(ohlcv))
    return builder.build()
