from __future__ import annotations

import datetime as dt
import unittest

import numpy as np

from gapless_plot import DateTimeAxis, IndexSpaceAxis, MinimalDateFormat, PatternDateFormat, TimeIndex


DAY_MS = 86_400_000


def _ms(year: int, month: int, day: int) -> int:
    return int(dt.datetime(year, month, day, tzinfo=dt.timezone.utc).timestamp() * 1000)


class _EchoFormatter:
    def __init__(self) -> None:
        self.resets = 0

    def format(self, timestamp_ms: int) -> str:
        return str(timestamp_ms)

    def reset(self) -> None:
        self.resets += 1


class MinimalDateFormatTests(unittest.TestCase):
    def test_first_tick_prints_day_then_month_on_rollover(self) -> None:
        fmt = MinimalDateFormat()
        labels = [fmt.format(_ms(2024, 1, d)) for d in (30, 31)] + [fmt.format(_ms(2024, 2, d)) for d in (1, 2)]
        self.assertEqual(labels, ["30", "31", "Feb", "2"])

    def test_reset_forgets_previous_date(self) -> None:
        fmt = MinimalDateFormat()
        fmt.format(_ms(2024, 1, 31))
        self.assertEqual(fmt.format(_ms(2024, 2, 1)), "Feb")
        fmt.reset()
        self.assertIsNone(fmt.last_date)
        self.assertEqual(fmt.format(_ms(2024, 2, 2)), "2")

    def test_same_month_in_another_year_is_a_new_month(self) -> None:
        fmt = MinimalDateFormat()
        fmt.format(_ms(2023, 3, 10))
        self.assertEqual(fmt.format(_ms(2024, 3, 10)), "Mar")

    def test_month_chars(self) -> None:
        fmt = MinimalDateFormat(1)
        fmt.format(_ms(2024, 8, 31))
        self.assertEqual(fmt.format(_ms(2024, 9, 1)), "S")
        fmt = MinimalDateFormat(5)
        fmt.format(_ms(2024, 8, 31))
        self.assertEqual(fmt.format(_ms(2024, 9, 1)), "Septe")
        with self.assertRaises(ValueError):
            MinimalDateFormat(0)

    def test_timezone_moves_the_calendar_date(self) -> None:
        late_utc = _ms(2024, 3, 1) + 23 * 3_600_000
        self.assertEqual(MinimalDateFormat().format(late_utc), "1")
        self.assertEqual(MinimalDateFormat(tz=dt.timezone(dt.timedelta(hours=9))).format(late_utc), "2")

    def test_pattern_format_is_stateless(self) -> None:
        fmt = PatternDateFormat("%Y-%m-%d")
        self.assertEqual(fmt.format(_ms(2024, 2, 29)), "2024-02-29")
        fmt.reset()
        self.assertEqual(fmt.format(_ms(2024, 2, 29)), "2024-02-29")


class IndexSpaceAxisTests(unittest.TestCase):
    def setUp(self) -> None:
        self.index = TimeIndex([100, 200, 300, 400, 500], (1, 4))

    def test_format_resolves_ordinal_through_visible_start(self) -> None:
        axis = IndexSpaceAxis(self.index, _EchoFormatter())
        self.assertEqual([axis.format(i) for i in range(4)], ["200", "300", "400", "500"])
        self.assertEqual(axis.format(1.9), "300")

    def test_format_is_empty_outside_the_series(self) -> None:
        axis = IndexSpaceAxis(self.index, _EchoFormatter())
        self.assertEqual(axis.format(4), "")
        self.assertEqual(axis.format(-1), "")
        self.assertEqual(axis.format(-0.5), "")
        self.assertEqual(axis.format(float("nan")), "")
        self.assertEqual(axis.format(float("inf")), "")

    def test_format_past_visible_end_labels_remaining_samples(self) -> None:
        axis = IndexSpaceAxis(TimeIndex([100, 200, 300, 400, 500], (1, 2)), _EchoFormatter())
        self.assertEqual(axis.format(1), "300")
        self.assertEqual(axis.format(2), "400")
        self.assertEqual(axis.format(3), "500")
        self.assertEqual(axis.format(4), "")

    def test_format_ticks_resets_formatter_each_pass(self) -> None:
        formatter = _EchoFormatter()
        axis = IndexSpaceAxis(self.index, formatter)
        axis.format_ticks([0, 1])
        axis.format_ticks([0, 1])
        self.assertEqual(formatter.resets, 2)

    def test_default_minimal_format_repeats_identically_across_passes(self) -> None:
        ts = [_ms(2024, 1, 30) + i * DAY_MS for i in range(5)]
        axis = IndexSpaceAxis(TimeIndex(ts))
        first = axis.format_ticks(np.arange(5.0))
        second = axis.format_ticks(np.arange(5.0))
        self.assertEqual(first, ["30", "31", "Feb", "2", "3"])
        self.assertEqual(first, second)

    def test_bounds_ticks_and_nearest_ordinal(self) -> None:
        axis = IndexSpaceAxis(self.index)
        self.assertEqual(axis.data_bounds(), (0.0, 3.0))
        np.testing.assert_array_equal(axis.ticks(-0.5, 10.0, 8), np.asarray([0.0, 1.0, 2.0, 3.0]))
        self.assertEqual(axis.nearest_ordinal(1.4), 1)
        self.assertEqual(axis.nearest_ordinal(-3.0), 0)
        self.assertEqual(axis.nearest_ordinal(99.0), 3)
        self.assertIsNone(axis.nearest_ordinal(float("nan")))


class DateTimeAxisTests(unittest.TestCase):
    def test_bounds_and_nearest_sample_use_real_time(self) -> None:
        ts = [_ms(2024, 1, 1), _ms(2024, 1, 2), _ms(2024, 1, 10)]
        axis = DateTimeAxis(TimeIndex(ts))
        self.assertEqual(axis.data_bounds(), (float(ts[0]), float(ts[2])))
        self.assertEqual(axis.nearest_ordinal(ts[1] + DAY_MS), 1)
        self.assertEqual(axis.nearest_ordinal(ts[2] - DAY_MS), 2)
        self.assertEqual(axis.to_axis_value(2), float(ts[2]))
        self.assertEqual(axis.format(ts[2]), "Jan 10")

    def test_day_ticks_are_midnight_aligned(self) -> None:
        ts = [_ms(2024, 1, 1) + 3_600_000, _ms(2024, 1, 5)]
        axis = DateTimeAxis(TimeIndex(ts))
        ticks = axis.ticks(float(ts[0]), float(ts[1]), 8)
        self.assertGreater(ticks.size, 1)
        for t in ticks:
            self.assertEqual(int(t) % DAY_MS, 0)


if __name__ == "__main__":
    unittest.main()
