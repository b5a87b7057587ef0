from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from decimal import Decimal, InvalidOperation

import numpy as np


_SECOND_MS = 1000
_MINUTE_MS = 60 * _SECOND_MS
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS

TIME_STEPS_MS: tuple[int, ...] = (
    1 * _SECOND_MS,
    2 * _SECOND_MS,
    5 * _SECOND_MS,
    10 * _SECOND_MS,
    15 * _SECOND_MS,
    30 * _SECOND_MS,
    1 * _MINUTE_MS,
    2 * _MINUTE_MS,
    5 * _MINUTE_MS,
    10 * _MINUTE_MS,
    15 * _MINUTE_MS,
    30 * _MINUTE_MS,
    1 * _HOUR_MS,
    2 * _HOUR_MS,
    3 * _HOUR_MS,
    6 * _HOUR_MS,
    12 * _HOUR_MS,
    1 * _DAY_MS,
    2 * _DAY_MS,
    7 * _DAY_MS,
    14 * _DAY_MS,
)
MONTH_STRIDES: tuple[int, ...] = (1, 2, 3, 6, 12)


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float


@dataclass(frozen=True)
class PlotTransform:
    sx: float
    tx: float
    sy: float
    ty: float


def pad_domain(xmin: float, xmax: float, margin: float) -> tuple[float, float]:
    if xmin == xmax:
        return (xmin - 1.0, xmax + 1.0)
    span = xmax - xmin
    return (xmin - span * margin, xmax + span * margin)


def pad_range(ymin: float, ymax: float) -> tuple[float, float]:
    # Keep the extremes off the plot edges.
    lo = ymin * (0.95 if ymin > 0.0 else 1.05)
    hi = ymax * (0.99 if ymax < 0.0 else 1.01)
    if lo == hi:
        delta = max(1.0, abs(lo) * 0.05)
        return (lo - delta, hi + delta)
    return (min(lo, hi), max(lo, hi))


def build_transform(limits: DataLimits, width: int, height: int) -> PlotTransform:
    if width <= 1 or height <= 1:
        raise ValueError("plot viewport width/height must be > 1")
    sx = (width - 1) / (limits.xmax - limits.xmin)
    tx = -limits.xmin * sx
    sy = (height - 1) / (limits.ymax - limits.ymin)
    ty = -limits.ymin * sy
    return PlotTransform(sx=sx, tx=tx, sy=sy, ty=ty)


def x_to_pixel(x: np.ndarray, transform: PlotTransform) -> np.ndarray:
    return np.asarray(x, dtype=np.float64) * transform.sx + transform.tx


def y_to_pixel(y: np.ndarray, transform: PlotTransform, height: int) -> np.ndarray:
    return (height - 1) - (np.asarray(y, dtype=np.float64) * transform.sy + transform.ty)


def pixel_to_x(px: float, transform: PlotTransform) -> float:
    return (float(px) - transform.tx) / transform.sx


def pixel_to_y(py: float, transform: PlotTransform, height: int) -> float:
    return ((height - 1) - float(py) - transform.ty) / transform.sy


def generate_nice_ticks(vmin: float, vmax: float, target: int, preferred_step: float | None = None) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    if preferred_step is not None and np.isfinite(preferred_step) and preferred_step > 0:
        # Use finer preferred step only if it doesn't explode label count.
        est_ticks = int(np.ceil((vmax - vmin) / preferred_step)) + 1
        if preferred_step < step and est_ticks <= max(target * 2, 12):
            step = preferred_step
    tick_min = np.floor(vmin / step) * step
    tick_max = np.ceil(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def generate_index_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    """Whole-number ticks within ``[vmin, vmax]``; ordinal axes have no fractional samples."""
    lo = max(0.0, float(np.ceil(vmin)))
    hi = float(np.floor(vmax))
    if hi < lo:
        return np.asarray([], dtype=np.float64)
    step = max(1.0, float(np.ceil(_nice_number(max(hi - lo, 1.0), round_result=False) / max(target - 1, 1))))
    step = max(1.0, _nice_number(step, round_result=True))
    start = float(np.ceil(lo / step) * step)
    return np.arange(start, hi + 0.5, step, dtype=np.float64)


def generate_time_ticks(vmin_ms: float, vmax_ms: float, target: int, *, tz: dt.tzinfo = dt.timezone.utc) -> np.ndarray:
    """Calendar-aligned ticks in epoch milliseconds, spaced by real elapsed time."""
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmax_ms <= vmin_ms:
        return np.asarray([vmin_ms], dtype=np.float64)
    raw_step = (vmax_ms - vmin_ms) / max(target - 1, 1)
    for step in TIME_STEPS_MS:
        if step >= raw_step:
            offset = _tz_offset_ms(vmin_ms, tz) if step >= _DAY_MS else 0
            first = np.ceil((vmin_ms + offset) / step) * step - offset
            return np.arange(first, vmax_ms + 0.5, step, dtype=np.float64)
    return _month_ticks(vmin_ms, vmax_ms, raw_step, tz)


def _month_ticks(vmin_ms: float, vmax_ms: float, raw_step: float, tz: dt.tzinfo) -> np.ndarray:
    months_needed = raw_step / (30.0 * _DAY_MS)
    stride = next((s for s in MONTH_STRIDES if s >= months_needed), None)
    if stride is None:
        stride = int(np.ceil(months_needed / 12.0)) * 12
    start = dt.datetime.fromtimestamp(vmin_ms / 1000.0, tz=tz)
    year, month = start.year, start.month
    month0 = (month - 1) // stride * stride
    ticks: list[float] = []
    while True:
        y = year + month0 // 12
        m = month0 % 12 + 1
        ms = dt.datetime(y, m, 1, tzinfo=tz).timestamp() * 1000.0
        if ms > vmax_ms:
            break
        if ms >= vmin_ms:
            ticks.append(ms)
        month0 += stride
    return np.asarray(ticks, dtype=np.float64)


def _tz_offset_ms(at_ms: float, tz: dt.tzinfo) -> int:
    offset = dt.datetime.fromtimestamp(at_ms / 1000.0, tz=tz).utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() * 1000)


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Only trim trailing zeros for fractional values (preserve integer zeros like 30, 40).
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
