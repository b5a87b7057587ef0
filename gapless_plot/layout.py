from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING, Any, Literal, Sequence

import numpy as np

from gapless_plot.annotations import Annotation, ValueMarker
from gapless_plot.date_format import resolve_timezone, to_datetime
from gapless_plot.errors import PlotDataError
from gapless_plot.plot import BuiltPlot
from gapless_plot.scales import (
    DataLimits,
    PlotTransform,
    build_transform,
    format_tick,
    format_ticks_for_axis,
    generate_nice_ticks,
    pad_domain,
    pixel_to_x,
    pixel_to_y,
    x_to_pixel,
    y_to_pixel,
)

if TYPE_CHECKING:
    from gapless_plot.chart import CompositeChart


GUTTER_LEFT = 16
GUTTER_RIGHT = 64
GUTTER_TOP = 8
GUTTER_BOTTOM = 40
TITLE_HEIGHT = 24
TOOLTIP_DATE_PATTERN = "%Y-%m-%d %H:%M"


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height


@dataclass(frozen=True)
class SeriesGeometry:
    kind: Literal["xy", "ohlc", "volume"]
    key: str
    px: np.ndarray
    py: np.ndarray
    mask: np.ndarray
    bar_width: float | None = None
    up: np.ndarray | None = None
    base_py: float | None = None
    ohlc_py: tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray] | None = None


@dataclass(frozen=True)
class AnnotationGeometry:
    kind: str
    points: tuple[tuple[float, float], ...]
    text: str = ""


@dataclass(frozen=True)
class MarkerGeometry:
    orientation: Literal["horizontal", "vertical"]
    pixel: float
    label: str = ""


@dataclass(frozen=True)
class PlotLayout:
    index: int
    rect: Rect
    limits: DataLimits
    transform: PlotTransform
    series: tuple[SeriesGeometry, ...]
    annotations: tuple[AnnotationGeometry, ...]
    markers: tuple[MarkerGeometry, ...]
    y_ticks: tuple[float, ...]
    y_tick_px: tuple[float, ...]
    y_tick_labels: tuple[str, ...]
    y_label: str

    def x_pixel(self, x: float) -> float:
        return self.rect.x + float(x_to_pixel(np.asarray([x]), self.transform)[0])

    def y_pixel(self, y: float) -> float:
        return self.rect.y + float(y_to_pixel(np.asarray([y]), self.transform, self.rect.height)[0])


@dataclass(frozen=True)
class ChartLayout:
    width: int
    height: int
    title: str
    x_limits: tuple[float, float]
    bar_width: float
    plots: tuple[PlotLayout, ...]
    x_ticks: tuple[float, ...]
    x_tick_px: tuple[float, ...]
    x_tick_labels: tuple[str, ...]

    def plot_at(self, px: float, py: float) -> PlotLayout | None:
        for plot in self.plots:
            if plot.rect.contains(px, py):
                return plot
        return None


@dataclass(frozen=True)
class HitResult:
    plot_index: int
    ordinal: int
    timestamp: int
    x_value: float
    y_value: float
    series_key: str
    tooltip: str


@dataclass(frozen=True)
class Crosshair:
    ordinal: int
    timestamp: int
    x_value: float
    pixel_x: float
    values: tuple[float, ...]


def stack_plot_rects(weights: Sequence[int], width: int, height: int, *, gap: int, title: bool = False) -> list[Rect]:
    """Stack sub-plots top to bottom with heights proportional to their weights."""
    if not weights:
        return []
    top = GUTTER_TOP + (TITLE_HEIGHT if title else 0)
    plot_w = width - GUTTER_LEFT - GUTTER_RIGHT
    inner_h = height - top - GUTTER_BOTTOM - gap * (len(weights) - 1)
    if plot_w <= 1 or inner_h < 2 * len(weights):
        raise PlotDataError("figure too small for subplot layout")
    total = sum(weights)
    heights = [inner_h * w // total for w in weights]
    extra = inner_h - sum(heights)
    for i in range(extra):
        heights[i % len(heights)] += 1
    if min(heights) <= 1:
        raise PlotDataError("figure too small for subplot layout")
    rects: list[Rect] = []
    y = top
    for h in heights:
        rects.append(Rect(x=GUTTER_LEFT, y=y, width=plot_w, height=h))
        y += h + gap
    return rects


def uniform_bar_width(plot_width: float, visible_count: int, ratio: float) -> float:
    if visible_count <= 0:
        return 0.0
    return plot_width * ratio / visible_count


def shared_x_limits(plots: Sequence[BuiltPlot], fallback: tuple[float, float], margin: float) -> tuple[float, float]:
    lo: float | None = None
    hi: float | None = None
    for plot in plots:
        bounds = plot.domain_bounds()
        if bounds is None:
            continue
        lo = bounds[0] if lo is None else min(lo, bounds[0])
        hi = bounds[1] if hi is None else max(hi, bounds[1])
    if lo is None or hi is None:
        lo, hi = fallback
    return pad_domain(lo, hi, margin)


def compute_layout(chart: "CompositeChart", width: int, height: int) -> ChartLayout:
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    config = chart.config
    rects = stack_plot_rects(
        [p.weight for p in chart.subplots], width, height, gap=config.subplot_gap_px, title=bool(chart.title)
    )
    xmin, xmax = shared_x_limits(chart.subplots, chart.domain_axis.data_bounds(), config.shared_axis_margin)
    bar_width = uniform_bar_width(rects[0].width, chart.time_index.visible_count, config.bar_width_ratio)

    plots: list[PlotLayout] = []
    for i, (built, rect) in enumerate(zip(chart.subplots, rects)):
        ymin, ymax = built.y_limits
        limits = DataLimits(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)
        transform = build_transform(limits, rect.width, rect.height)
        y_ticks = generate_nice_ticks(ymin, ymax, config.y_tick_target, preferred_step=built.y_tick_step)
        y_ticks = y_ticks[(y_ticks >= ymin) & (y_ticks <= ymax)]
        plots.append(
            PlotLayout(
                index=i,
                rect=rect,
                limits=limits,
                transform=transform,
                series=tuple(_series_geometry(built, rect, transform, bar_width)),
                annotations=tuple(_annotation_geometry(a, rect, transform) for a in built.annotations),
                markers=tuple(_marker_geometry(m, rect, transform) for m in built.markers),
                y_ticks=tuple(float(v) for v in y_ticks),
                y_tick_px=tuple(float(v) for v in rect.y + y_to_pixel(y_ticks, transform, rect.height)),
                y_tick_labels=tuple(format_ticks_for_axis(y_ticks)),
                y_label=built.y_label,
            )
        )

    x_ticks = chart.domain_axis.ticks(xmin, xmax, config.x_tick_target)
    first = plots[0]
    return ChartLayout(
        width=width,
        height=height,
        title=chart.title,
        x_limits=(xmin, xmax),
        bar_width=bar_width,
        plots=tuple(plots),
        x_ticks=tuple(float(v) for v in x_ticks),
        x_tick_px=tuple(float(v) for v in first.rect.x + x_to_pixel(x_ticks, first.transform)),
        x_tick_labels=tuple(chart.domain_axis.format_ticks(x_ticks)),
    )


def hit_test(chart: "CompositeChart", layout: ChartLayout, px: float, py: float) -> HitResult | None:
    """Resolve a pointer position to the nearest visible sample of the sub-plot under it."""
    plot = layout.plot_at(px, py)
    if plot is None:
        return None
    x = pixel_to_x(px - plot.rect.x, plot.transform)
    ordinal = chart.domain_axis.nearest_ordinal(x)
    if ordinal is None:
        return None
    timestamp = chart.time_index.at(ordinal)
    if timestamp is None:
        return None
    built = chart.subplots[plot.index]
    ds = built.datasets[0]
    return HitResult(
        plot_index=plot.index,
        ordinal=ordinal,
        timestamp=timestamp,
        x_value=chart.domain_axis.to_axis_value(ordinal),
        y_value=pixel_to_y(py - plot.rect.y, plot.transform, plot.rect.height),
        series_key=ds.series_key(0),
        tooltip=tooltip_text(ds, ordinal, timestamp, tz=chart.config.timezone),
    )


def crosshair(chart: "CompositeChart", layout: ChartLayout, px: float) -> Crosshair | None:
    """Snap a shared vertical crosshair to the nearest sample across every sub-plot."""
    first = layout.plots[0]
    if not (first.rect.x <= px < first.rect.x + first.rect.width):
        return None
    ordinal = chart.domain_axis.nearest_ordinal(pixel_to_x(px - first.rect.x, first.transform))
    if ordinal is None:
        return None
    timestamp = chart.time_index.at(ordinal)
    if timestamp is None:
        return None
    x_value = chart.domain_axis.to_axis_value(ordinal)
    values = tuple(_primary_value(built, ordinal) for built in chart.subplots)
    return Crosshair(
        ordinal=ordinal,
        timestamp=timestamp,
        x_value=x_value,
        pixel_x=first.x_pixel(x_value),
        values=values,
    )


def tooltip_text(dataset: Any, item: int, timestamp: int, *, tz: str = "UTC") -> str:
    date = to_datetime(timestamp, resolve_timezone(tz)).strftime(TOOLTIP_DATE_PATTERN)
    if dataset.kind == "volume":
        return f"Date={date} Volume={format_tick(dataset.volume_value(0, item))}"
    if dataset.kind == "ohlc":
        o, h, l, c = (
            dataset.open_value(0, item),
            dataset.high_value(0, item),
            dataset.low_value(0, item),
            dataset.close_value(0, item),
        )
        return f"Date={date} O={format_tick(o)} H={format_tick(h)} L={format_tick(l)} C={format_tick(c)}"
    return f"Date={date} {dataset.series_key(0) or 'Value'}={format_tick(dataset.y_value(0, item))}"


def _primary_value(built: BuiltPlot, item: int) -> float:
    ds = built.datasets[0]
    if item >= ds.item_count(0):
        return math.nan
    return ds.y_value(0, item)


def _series_geometry(built: BuiltPlot, rect: Rect, transform: PlotTransform, bar_width: float) -> list[SeriesGeometry]:
    out: list[SeriesGeometry] = []
    for ds in built.datasets:
        for s in range(ds.series_count()):
            px = rect.x + x_to_pixel(ds.x_values(s), transform)
            py = rect.y + y_to_pixel(ds.y_values(s), transform, rect.height)
            if ds.kind == "ohlc":
                ohlc = tuple(rect.y + y_to_pixel(a, transform, rect.height) for a in ds.ohlc_arrays(s))
                out.append(
                    SeriesGeometry(
                        kind="ohlc",
                        key=ds.series_key(s),
                        px=px,
                        py=py,
                        mask=ds.mask(s),
                        bar_width=bar_width,
                        ohlc_py=ohlc,  # type: ignore[arg-type]
                    )
                )
            elif ds.kind == "volume":
                base = rect.y + float(y_to_pixel(np.asarray([0.0]), transform, rect.height)[0])
                out.append(
                    SeriesGeometry(
                        kind="volume",
                        key=ds.series_key(s),
                        px=px,
                        py=py,
                        mask=ds.mask(s),
                        bar_width=bar_width,
                        up=ds.up_mask(s),
                        base_py=base,
                    )
                )
            else:
                out.append(SeriesGeometry(kind="xy", key=ds.series_key(s), px=px, py=py, mask=ds.mask(s)))
    return out


def _to_px(rect: Rect, transform: PlotTransform, x: float, y: float) -> tuple[float, float]:
    px = rect.x + x * transform.sx + transform.tx
    py = rect.y + (rect.height - 1) - (y * transform.sy + transform.ty)
    return (float(px), float(py))


def _annotation_geometry(annotation: Annotation, rect: Rect, transform: PlotTransform) -> AnnotationGeometry:
    kind = annotation.kind
    if kind == "point":
        return AnnotationGeometry(kind, (_to_px(rect, transform, annotation.x, annotation.y),), annotation.text)
    if kind == "line":
        return AnnotationGeometry(
            kind,
            (
                _to_px(rect, transform, annotation.x1, annotation.y1),
                _to_px(rect, transform, annotation.x2, annotation.y2),
            ),
        )
    if kind == "box":
        x0, y0, x1, y1 = annotation.normalized()
        corners = ((x0, y0), (x1, y0), (x1, y1), (x0, y1))
        return AnnotationGeometry(kind, tuple(_to_px(rect, transform, x, y) for x, y in corners))
    if kind == "polygon":
        return AnnotationGeometry(kind, tuple(_to_px(rect, transform, x, y) for x, y in annotation.vertices()))
    if kind == "title":
        px = rect.x + annotation.x * (rect.width - 1)
        py = rect.y + (1.0 - annotation.y) * (rect.height - 1)
        return AnnotationGeometry(kind, ((float(px), float(py)),), annotation.text)
    if kind == "data_image":
        return AnnotationGeometry(
            kind,
            (
                _to_px(rect, transform, annotation.x, annotation.y),
                _to_px(rect, transform, annotation.x + annotation.width, annotation.y + annotation.height),
            ),
        )
    return AnnotationGeometry(kind, ())


def _marker_geometry(marker: ValueMarker, rect: Rect, transform: PlotTransform) -> MarkerGeometry:
    if marker.orientation == "vertical":
        return MarkerGeometry("vertical", _to_px(rect, transform, marker.value, 0.0)[0], marker.label)
    return MarkerGeometry("horizontal", _to_px(rect, transform, 0.0, marker.value)[1], marker.label)
