from __future__ import annotations

import math
import unittest

import numpy as np
import pandas as pd

from gapless_plot import OhlcvDataset, PlotDataError, TimeSeries, TimeSeriesCollection, VolumeDataset
from gapless_plot.adapters import IndexMappedDataset, index_mapped
from gapless_plot.datasets import time_series


def _collection() -> TimeSeriesCollection:
    ts = np.asarray([1_000, 5_000, 6_000], dtype=np.int64)
    return TimeSeriesCollection(
        [
            time_series("close", [10.0, 11.0, 12.0], timestamps=ts),
            time_series("sma", [None, 10.5, 11.5], timestamps=ts),
        ]
    )


def _ohlcv() -> OhlcvDataset:
    return OhlcvDataset(
        "ACME",
        timestamps=[100, 200, 300, 400],
        open=[10.0, 11.0, 12.0, 11.0],
        high=[12.0, 13.0, 14.0, 12.5],
        low=[9.0, 10.0, 11.0, 10.0],
        close=[11.0, 12.0, 11.5, 11.0],
        volume=[1_000, 2_000, 1_500, 500],
    )


class TimeKeyedDatasetTests(unittest.TestCase):
    def test_x_value_is_timestamp(self) -> None:
        ds = _collection()
        self.assertEqual(ds.x_value(0, 1), 5_000.0)
        self.assertTrue(math.isnan(ds.x_value(0, 3)))
        self.assertEqual(ds.x_position_of(5_000), 5_000.0)
        self.assertEqual(ds.domain_bounds(), (1_000.0, 6_000.0))

    def test_missing_values_are_masked_not_dropped(self) -> None:
        ds = _collection()
        self.assertEqual(ds.item_count(1), 3)
        np.testing.assert_array_equal(ds.mask(1), np.asarray([False, True, True]))
        self.assertEqual(ds.y_bounds(), (10.0, 12.0))

    def test_series_rejects_length_mismatch(self) -> None:
        with self.assertRaises(PlotDataError):
            TimeSeries("x", np.asarray([1, 2, 3]), np.asarray([1.0, 2.0]))

    def test_window_slices_every_series(self) -> None:
        ds = _collection().window(1, 2)
        np.testing.assert_array_equal(ds.timestamps(0), np.asarray([5_000, 6_000]))
        np.testing.assert_array_equal(ds.y_values(1), np.asarray([10.5, 11.5]))


class OhlcvDatasetTests(unittest.TestCase):
    def test_accessors_and_bounds(self) -> None:
        ds = _ohlcv()
        self.assertEqual(ds.open_value(0, 2), 12.0)
        self.assertEqual(ds.high_value(0, 2), 14.0)
        self.assertEqual(ds.low_value(0, 0), 9.0)
        self.assertEqual(ds.close_value(0, 3), 11.0)
        self.assertEqual(ds.volume_value(0, 1), 2_000.0)
        self.assertEqual(ds.y_bounds(), (9.0, 14.0))

    def test_length_mismatch_raises(self) -> None:
        with self.assertRaises(PlotDataError):
            OhlcvDataset("bad", timestamps=[1, 2], open=[1.0], high=[1.0, 2.0], low=[1.0, 2.0], close=[1.0, 2.0])

    def test_from_frame_reads_datetime_index_and_columns_case_insensitively(self) -> None:
        frame = pd.DataFrame(
            {
                "Open": [1.0, 2.0],
                "High": [2.0, 3.0],
                "Low": [0.5, 1.5],
                "Close": [1.5, 2.5],
                "Volume": [10, 20],
            },
            index=pd.to_datetime(["2024-01-02", "2024-01-03"], utc=True),
        )
        ds = OhlcvDataset.from_frame(frame, name="frame")
        np.testing.assert_array_equal(ds.timestamps(0), np.asarray([1_704_153_600_000, 1_704_240_000_000]))
        self.assertEqual(ds.close_value(0, 1), 2.5)
        self.assertEqual(ds.volume_value(0, 0), 10.0)

    def test_volume_dataset_marks_up_bars(self) -> None:
        vol = VolumeDataset.from_ohlcv(_ohlcv())
        np.testing.assert_array_equal(vol.up_mask(0), np.asarray([True, True, False, True]))
        self.assertFalse(vol.is_up(0, 2))
        self.assertEqual(vol.y_bounds(), (0.0, 2_000.0))
        windowed = vol.window(2, 3)
        self.assertEqual(windowed.item_count(0), 2)
        self.assertEqual(windowed.volume_value(0, 1), 500.0)


class IndexMappedDatasetTests(unittest.TestCase):
    def test_x_value_is_item_position_independent_of_time(self) -> None:
        mapped = index_mapped(_collection())
        self.assertEqual([mapped.x_value(0, i) for i in range(3)], [0.0, 1.0, 2.0])
        self.assertEqual(mapped.start_x_value(0, 2), 2.0)
        self.assertEqual(mapped.end_x_value(0, 2), 2.0)
        self.assertTrue(math.isnan(mapped.x_value(0, 3)))
        self.assertTrue(math.isnan(mapped.x_value(0, -1)))

    def test_position_lookup_and_extent_are_index_based(self) -> None:
        mapped = index_mapped(_collection())
        self.assertEqual(mapped.x_position_of(5_000), 1.0)
        self.assertTrue(math.isnan(mapped.x_position_of(4_000)))
        self.assertEqual(mapped.domain_bounds(), (0.0, 2.0))

    def test_other_accessors_pass_through(self) -> None:
        source = _ohlcv()
        mapped = index_mapped(source)
        self.assertEqual(mapped.kind, "ohlc")
        self.assertEqual(mapped.name, "ACME")
        self.assertEqual(mapped.timestamp(0, 1), 200)
        self.assertEqual(mapped.high_value(0, 2), source.high_value(0, 2))
        self.assertEqual(mapped.volume_value(0, 3), 500.0)
        self.assertEqual(mapped.y_bounds(), source.y_bounds())
        self.assertIs(mapped.wrapped, source)

    def test_window_keeps_index_mapping(self) -> None:
        mapped = index_mapped(_ohlcv()).window(1, 3)
        self.assertIsInstance(mapped, IndexMappedDataset)
        self.assertEqual(mapped.x_value(0, 0), 0.0)
        self.assertEqual(mapped.open_value(0, 0), 11.0)

    def test_double_wrapping_is_rejected(self) -> None:
        mapped = index_mapped(_collection())
        self.assertIs(index_mapped(mapped), mapped)
        with self.assertRaises(TypeError):
            IndexMappedDataset(mapped)


if __name__ == "__main__":
    unittest.main()
