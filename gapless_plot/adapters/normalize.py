from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

import numpy as np

from gapless_plot.errors import PlotDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def coerce_timestamps(value: Any) -> np.ndarray:
    """Return a read-only int64 view of epoch-millisecond timestamps.

    The caller's array is never copied when it already holds int64 values; the
    returned view is flagged non-writeable so the chart build cannot mutate it.
    """
    if pd is not None and isinstance(value, (pd.DatetimeIndex, pd.Series)) and _is_datetime_dtype(value):
        arr = _datetime_to_epoch_ms(value)
    elif isinstance(value, np.ndarray) and value.dtype.kind == "M":
        arr = value.astype("datetime64[ms]").astype(np.int64)
    else:
        raw = _coerce_1d_numeric(value, label="timestamps", keep_integers=True)
        if raw.dtype.kind == "f":
            if not np.all(np.isfinite(raw)):
                raise PlotDataError("timestamps must be finite")
            if not np.all(np.equal(np.floor(raw), raw)):
                raise PlotDataError("timestamps must be whole milliseconds")
        arr = raw.astype(np.int64, copy=False)
    view = arr.view()
    view.flags.writeable = False
    return view


def coerce_values(value: Any, *, label: str) -> np.ndarray:
    if value is None:
        raise PlotDataError(f"{label} input is required")
    arr = _coerce_1d_numeric(value, label=label, keep_integers=False)
    if arr.size == 0:
        raise PlotDataError(f"empty series: {label}")
    view = arr.view()
    view.flags.writeable = False
    return view


def resolve_column(data: Any, key: str) -> Any:
    if pd is None:
        raise PlotDataError("pandas is required when using a DataFrame")
    if not isinstance(data, pd.DataFrame):
        raise PlotDataError("`data` must be a pandas DataFrame")
    for column in data.columns:
        if str(column).lower() == key.lower():
            return data[column]
    raise PlotDataError(f"column not found: {key}")


def frame_timestamps(data: Any) -> np.ndarray:
    if pd is None:
        raise PlotDataError("pandas is required when using a DataFrame")
    if not isinstance(data, pd.DataFrame):
        raise PlotDataError("`data` must be a pandas DataFrame")
    if isinstance(data.index, pd.DatetimeIndex):
        return coerce_timestamps(data.index)
    return coerce_timestamps(resolve_column(data, "time"))


def _is_datetime_dtype(series: Any) -> bool:
    if pd is None:
        return False
    try:
        return bool(pd.api.types.is_datetime64_any_dtype(series))
    except Exception:
        return False


def _datetime_to_epoch_ms(value: Any) -> np.ndarray:
    index = pd.DatetimeIndex(value)
    if index.tz is not None:
        index = index.tz_convert("UTC").tz_localize(None)
    return index.to_numpy().astype("datetime64[ms]").astype(np.int64)


def _coerce_1d_numeric(value: Any, *, label: str, keep_integers: bool) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        if keep_integers and not tensor.is_floating_point():
            return tensor.to(torch.int64).numpy()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, (pd.Series, pd.Index)):
        if value.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value.to_numpy(), label=label, keep_integers=keep_integers)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label, keep_integers=keep_integers)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _coerce_ndarray(np.asarray(value, dtype=object), label=label, keep_integers=keep_integers)

    raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")


def _coerce_ndarray(arr: np.ndarray, *, label: str, keep_integers: bool) -> np.ndarray:
    if arr.ndim != 1:
        raise PlotDataError(f"{label} must be 1-D")
    if keep_integers and arr.dtype.kind in {"i", "u"}:
        return arr.astype(np.int64, copy=False)
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)

    if keep_integers and arr.size and all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in arr.tolist()):
        return np.asarray(arr.tolist(), dtype=np.int64)

    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        if isinstance(raw, Decimal):
            out[i] = float(raw)
            continue
        try:
            out[i] = float(raw)
        except Exception as exc:  # pragma: no cover - defensive
            raise PlotDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
