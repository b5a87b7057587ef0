from __future__ import annotations

import datetime as dt
import unittest

import numpy as np

from gapless_plot import (
    BoxAnnotation,
    ChartBuilder,
    ChartConfig,
    OhlcPlot,
    OhlcvDataset,
    PlotDataError,
    TimeSeriesPlot,
    TitleAnnotation,
    VolumePlot,
    candlestick_chart,
)
from gapless_plot.layout import stack_plot_rects, uniform_bar_width


DAY_MS = 86_400_000
START = int(dt.datetime(2024, 1, 29, tzinfo=dt.timezone.utc).timestamp() * 1000)
# Six trading days with a long gap after the third sample.
DAYS = [0, 1, 2, 10, 11, 12]
TS = [START + d * DAY_MS for d in DAYS]


def _ohlcv() -> OhlcvDataset:
    return OhlcvDataset(
        "ACME",
        timestamps=TS,
        open=[10.0, 11.0, 12.0, 11.0, 10.0, 10.5],
        high=[12.0, 13.0, 14.0, 12.5, 11.0, 11.5],
        low=[9.0, 10.0, 11.0, 10.0, 9.5, 10.0],
        close=[11.0, 12.0, 11.5, 11.0, 10.5, 11.0],
        volume=[1_000, 2_000, 1_500, 500, 800, 900],
    )


def _line_chart(show_time_gaps: bool):
    return (
        ChartBuilder(ChartConfig())
        .time_data(TS)
        .show_time_gaps(show_time_gaps)
        .plot(TimeSeriesPlot().series([1, 2, 3, 4, 5, 6], name="s"))
        .build()
    )


class LayoutTests(unittest.TestCase):
    def test_gapless_spacing_is_uniform_and_gapped_follows_elapsed_time(self) -> None:
        gapless = _line_chart(False).layout(800, 400)
        gapped = _line_chart(True).layout(800, 400)
        gapless_steps = np.diff(gapless.plots[0].series[0].px)
        gapped_steps = np.diff(gapped.plots[0].series[0].px)
        np.testing.assert_allclose(gapless_steps, np.full(5, gapless_steps[0]))
        self.assertAlmostEqual(gapped_steps[2] / gapped_steps[0], 8.0, places=6)

    def test_gapless_tick_labels_read_as_dates(self) -> None:
        chart = _line_chart(False)
        layout = chart.layout(800, 400)
        self.assertEqual(layout.x_ticks, (0.0, 1.0, 2.0, 3.0, 4.0, 5.0))
        self.assertEqual(layout.x_tick_labels, ("29", "30", "31", "Feb", "9", "10"))
        self.assertEqual(chart.layout(800, 400).x_tick_labels, layout.x_tick_labels)

    def test_month_rollover_label(self) -> None:
        ts = [START + d * DAY_MS for d in range(6)]
        chart = (
            ChartBuilder(ChartConfig())
            .time_data(ts)
            .show_time_gaps(False)
            .plot(TimeSeriesPlot().series([1, 2, 3, 4, 5, 6]))
            .build()
        )
        self.assertEqual(chart.layout(800, 400).x_tick_labels, ("29", "30", "31", "Feb", "2", "3"))

    def test_shared_domain_is_padded_by_margin(self) -> None:
        layout = _line_chart(False).layout(800, 400)
        xmin, xmax = layout.x_limits
        self.assertAlmostEqual(xmin, -0.025)
        self.assertAlmostEqual(xmax, 5.025)

    def test_subplots_stack_by_weight(self) -> None:
        rects = stack_plot_rects([3, 1], 800, 400, gap=10)
        self.assertEqual(len(rects), 2)
        self.assertEqual(rects[0].x, rects[1].x)
        self.assertEqual(rects[0].width, rects[1].width)
        self.assertEqual(rects[1].y, rects[0].y + rects[0].height + 10)
        self.assertAlmostEqual(rects[0].height / rects[1].height, 3.0, delta=0.05)
        with self.assertRaises(PlotDataError):
            stack_plot_rects([1, 1], 40, 40, gap=10)

    def test_bar_width_is_uniform_in_both_modes(self) -> None:
        data = _ohlcv()
        for show in (True, False):
            chart = (
                ChartBuilder(ChartConfig())
                .time_data(TS)
                .show_time_gaps(show)
                .plot(OhlcPlot(weight=3).ohlc(data))
                .plot(VolumePlot().volume(data))
                .build()
            )
            layout = chart.layout(800, 400)
            expected = uniform_bar_width(layout.plots[0].rect.width, 6, 0.95)
            self.assertAlmostEqual(layout.bar_width, expected)
            volume = layout.plots[1].series[0]
            self.assertEqual(volume.kind, "volume")
            self.assertAlmostEqual(volume.bar_width, expected)
            self.assertIsNotNone(volume.up)
            candles = layout.plots[0].series[0]
            self.assertEqual(candles.kind, "ohlc")
            self.assertEqual(len(candles.ohlc_py), 4)

    def test_annotation_geometry(self) -> None:
        plot = (
            TimeSeriesPlot()
            .series([1, 2, 3, 4, 5, 6])
            .annotation(BoxAnnotation(TS[1], 2.0, TS[3], 4.0))
            .annotation(TitleAnnotation("corner", x=0.0, y=1.0))
        )
        chart = ChartBuilder(ChartConfig()).time_data(TS).show_time_gaps(False).plot(plot).build()
        layout = chart.layout(800, 400)
        sub = layout.plots[0]
        box, title = sub.annotations
        self.assertEqual(len(box.points), 4)
        self.assertAlmostEqual(box.points[0][0], sub.x_pixel(1.0))
        self.assertAlmostEqual(box.points[1][0], sub.x_pixel(3.0))
        self.assertEqual(title.points[0], (float(sub.rect.x), float(sub.rect.y)))
        self.assertEqual(title.text, "corner")

    def test_hit_test_resolves_nearest_sample_and_volume_tooltip(self) -> None:
        chart = candlestick_chart(_ohlcv(), show_time_gaps=False, config=ChartConfig())
        layout = chart.layout(800, 400)
        volume = layout.plots[1]
        px = volume.x_pixel(3.2)
        py = volume.rect.y + volume.rect.height / 2
        hit = chart.hit_test(px, py, width=800, height=400)
        assert hit is not None
        self.assertEqual(hit.plot_index, 1)
        self.assertEqual(hit.ordinal, 3)
        self.assertEqual(hit.timestamp, TS[3])
        self.assertEqual(hit.tooltip, "Date=2024-02-08 00:00 Volume=500")
        self.assertIsNone(chart.hit_test(1, 1, width=800, height=400))

    def test_hit_test_ohlc_tooltip(self) -> None:
        chart = candlestick_chart(_ohlcv(), show_time_gaps=True, config=ChartConfig())
        layout = chart.layout(800, 400)
        price = layout.plots[0]
        hit = chart.hit_test(price.x_pixel(float(TS[0])), price.rect.y + 5, width=800, height=400)
        assert hit is not None
        self.assertEqual(hit.ordinal, 0)
        self.assertEqual(hit.tooltip, "Date=2024-01-29 00:00 O=10 H=12 L=9 C=11")

    def test_crosshair_is_shared_across_subplots(self) -> None:
        chart = candlestick_chart(_ohlcv(), show_time_gaps=False, config=ChartConfig())
        layout = chart.layout(800, 400)
        px = layout.plots[0].x_pixel(1.4)
        cross = chart.crosshair(px, width=800, height=400)
        assert cross is not None
        self.assertEqual(cross.ordinal, 1)
        self.assertEqual(cross.timestamp, TS[1])
        self.assertEqual(cross.x_value, 1.0)
        self.assertAlmostEqual(cross.pixel_x, layout.plots[1].x_pixel(1.0))
        self.assertEqual(cross.values, (12.0, 2_000.0))
        self.assertIsNone(chart.crosshair(0, width=800, height=400))


if __name__ == "__main__":
    unittest.main()
