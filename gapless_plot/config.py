from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
import os
import tomllib
from typing import Any
from zoneinfo import ZoneInfoNotFoundError

from gapless_plot.date_format import DEFAULT_MONTH_CHARS, resolve_timezone
from gapless_plot.errors import ChartConfigurationError

SHOW_TIME_GAPS_ENV = "GAPLESS_PLOT_SHOW_TIME_GAPS"

DEFAULT_SHARED_AXIS_MARGIN = 0.005
DEFAULT_BAR_WIDTH_RATIO = 0.95


@dataclass(frozen=True)
class ChartConfig:
    show_time_gaps: bool = True
    shared_axis_margin: float = DEFAULT_SHARED_AXIS_MARGIN
    bar_width_ratio: float = DEFAULT_BAR_WIDTH_RATIO
    month_chars: int = DEFAULT_MONTH_CHARS
    x_tick_target: int = 8
    y_tick_target: int = 6
    subplot_gap_px: int = 10
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        for name in ("shared_axis_margin", "bar_width_ratio"):
            object.__setattr__(self, name, _coerce_float(getattr(self, name), name))
        for name in ("month_chars", "x_tick_target", "y_tick_target", "subplot_gap_px"):
            object.__setattr__(self, name, _coerce_int(getattr(self, name), name))
        object.__setattr__(self, "timezone", _coerce_timezone(self.timezone, "timezone"))

        if not (0.0 <= self.shared_axis_margin < 0.5):
            raise ChartConfigurationError("shared_axis_margin must be in [0, 0.5)")
        if not (0.0 < self.bar_width_ratio <= 1.0):
            raise ChartConfigurationError("bar_width_ratio must be in (0, 1]")
        if self.month_chars < 1:
            raise ChartConfigurationError(f"month_chars must be >= 1, got {self.month_chars}")
        if self.x_tick_target <= 0 or self.y_tick_target <= 0:
            raise ChartConfigurationError("tick targets must be > 0")
        if self.subplot_gap_px < 0:
            raise ChartConfigurationError("subplot_gap_px must be >= 0")


def default_chart_config() -> ChartConfig:
    return apply_env_overrides(ChartConfig())


def apply_env_overrides(config: ChartConfig) -> ChartConfig:
    raw = os.getenv(SHOW_TIME_GAPS_ENV, "").strip()
    if not raw:
        return config
    return replace(config, show_time_gaps=_parse_bool(raw, label=SHOW_TIME_GAPS_ENV))


def load_chart_config(path: str | Path) -> ChartConfig:
    with Path(path).open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("chart", {})
    if not isinstance(table, dict):
        raise ChartConfigurationError("[chart] must be a table")
    known = {f.name for f in fields(ChartConfig)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ChartConfigurationError(f"unknown chart config keys: {', '.join(unknown)}")
    kwargs: dict[str, Any] = dict(table)
    if "show_time_gaps" in kwargs:
        kwargs["show_time_gaps"] = _parse_bool(kwargs["show_time_gaps"], label="show_time_gaps")
    return apply_env_overrides(ChartConfig(**kwargs))


def _parse_bool(value: Any, *, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ChartConfigurationError(f"{label} must be a boolean, got {value!r}")


def _coerce_int(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ChartConfigurationError(f"{field_name} must be an integer, got {value!r}")
    return value


def _coerce_float(value: object, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ChartConfigurationError(f"{field_name} must be a number, got {value!r}")
    return float(value)


def _coerce_timezone(value: object, field_name: str) -> str:
    if not isinstance(value, str):
        raise ChartConfigurationError(f"{field_name} must be a string, got {value!r}")
    try:
        resolve_timezone(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ChartConfigurationError(f"{field_name} {value!r} is not a known time zone") from exc
    return value
