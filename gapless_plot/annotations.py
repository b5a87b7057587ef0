from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Callable, ClassVar, Literal, Sequence

from gapless_plot.errors import PlotDataError
from gapless_plot.time_index import TimeIndex

LOGGER = logging.getLogger(__name__)

AnnotationKind = Literal["point", "line", "box", "polygon", "title", "data_image", "shape"]
CoordinateKind = Literal["data", "relative"]
MappingOutcome = Literal["mapped", "partial", "unmappable", "unsupported", "relative"]
PointStyle = Literal["text", "marker", "arrow", "drawable"]
MarkerOrientation = Literal["horizontal", "vertical"]


@dataclass
class PointAnnotation:
    x: float
    y: float
    text: str = ""
    style: PointStyle = "text"
    angle_deg: float = 0.0

    kind: ClassVar[AnnotationKind] = "point"
    coordinates: ClassVar[CoordinateKind] = "data"


@dataclass
class LineAnnotation:
    x1: float
    y1: float
    x2: float
    y2: float

    kind: ClassVar[AnnotationKind] = "line"
    coordinates: ClassVar[CoordinateKind] = "data"


@dataclass
class BoxAnnotation:
    x1: float
    y1: float
    x2: float
    y2: float

    kind: ClassVar[AnnotationKind] = "box"
    coordinates: ClassVar[CoordinateKind] = "data"

    def normalized(self) -> tuple[float, float, float, float]:
        """Corners as ``(lower_x, lower_y, upper_x, upper_y)`` whatever order they were declared in."""
        return (min(self.x1, self.x2), min(self.y1, self.y2), max(self.x1, self.x2), max(self.y1, self.y2))


@dataclass
class PolygonAnnotation:
    coords: Sequence[float]

    kind: ClassVar[AnnotationKind] = "polygon"
    coordinates: ClassVar[CoordinateKind] = "data"

    def __post_init__(self) -> None:
        # Own a copy; mapping rewrites x values in place.
        self.coords = [float(v) for v in self.coords]
        if len(self.coords) < 2 or len(self.coords) % 2 != 0:
            raise PlotDataError(f"polygon needs (x, y) pairs, got {len(self.coords)} values")

    def vertices(self) -> list[tuple[float, float]]:
        c = self.coords
        return [(c[i], c[i + 1]) for i in range(0, len(c), 2)]


@dataclass
class TitleAnnotation:
    text: str
    x: float = 0.5
    y: float = 1.0
    anchor: str = "top"

    kind: ClassVar[AnnotationKind] = "title"
    coordinates: ClassVar[CoordinateKind] = "relative"


@dataclass
class DataImageAnnotation:
    x: float
    y: float
    width: float
    height: float
    image: Any = None

    kind: ClassVar[AnnotationKind] = "data_image"
    coordinates: ClassVar[CoordinateKind] = "data"


@dataclass
class OpaqueShapeAnnotation:
    shape: Any = None

    kind: ClassVar[AnnotationKind] = "shape"
    coordinates: ClassVar[CoordinateKind] = "data"


Annotation = (
    PointAnnotation
    | LineAnnotation
    | BoxAnnotation
    | PolygonAnnotation
    | TitleAnnotation
    | DataImageAnnotation
    | OpaqueShapeAnnotation
)


@dataclass
class ValueMarker:
    value: float
    orientation: MarkerOrientation = "horizontal"
    label: str = ""

    def __post_init__(self) -> None:
        if self.orientation not in {"horizontal", "vertical"}:
            raise PlotDataError(f"unsupported marker orientation: {self.orientation}")


def clone_annotation(annotation: Annotation) -> Annotation:
    return replace(annotation)


def clone_marker(marker: ValueMarker) -> ValueMarker:
    return replace(marker)


@dataclass
class AnnotationIndexMapper:
    """Rewrites decoration x values from timestamps to ordinal positions.

    Each x found in the visible window becomes ``position - start``. An x with no
    matching sample is left as declared. Continuous-extent images and opaque shapes
    are skipped, and figure-relative placements are never touched.
    """

    time_index: TimeIndex
    _handlers: dict[str, Callable[[Any], tuple[int, int]]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._handlers = {
            "point": self._map_point,
            "line": self._map_two_point,
            "box": self._map_two_point,
            "polygon": self._map_polygon,
        }

    def map_x(self, x: float) -> float | None:
        ordinal = self.time_index.ordinal_of(x)
        return None if ordinal is None else float(ordinal)

    def map(self, annotation: Annotation) -> MappingOutcome:
        if annotation.coordinates == "relative":
            return "relative"
        handler = self._handlers.get(annotation.kind)
        if handler is None:
            LOGGER.debug("index mapping skipped for unsupported %s annotation", annotation.kind)
            return "unsupported"
        found, total = handler(annotation)
        return _outcome(annotation.kind, found, total)

    def map_marker(self, marker: ValueMarker) -> MappingOutcome:
        if marker.orientation == "horizontal":
            return "relative"
        mapped = self.map_x(marker.value)
        if mapped is None:
            LOGGER.debug("marker at %s has no sample in the visible window", marker.value)
            return "unmappable"
        marker.value = mapped
        return "mapped"

    def _map_point(self, annotation: PointAnnotation) -> tuple[int, int]:
        mapped = self.map_x(annotation.x)
        if mapped is not None:
            annotation.x = mapped
        return (int(mapped is not None), 1)

    def _map_two_point(self, annotation: LineAnnotation | BoxAnnotation) -> tuple[int, int]:
        found = 0
        x1 = self.map_x(annotation.x1)
        if x1 is not None:
            annotation.x1 = x1
            found += 1
        x2 = self.map_x(annotation.x2)
        if x2 is not None:
            annotation.x2 = x2
            found += 1
        return (found, 2)

    def _map_polygon(self, annotation: PolygonAnnotation) -> tuple[int, int]:
        coords = list(annotation.coords)
        found = 0
        for i in range(0, len(coords), 2):
            mapped = self.map_x(coords[i])
            if mapped is not None:
                coords[i] = mapped
                found += 1
        annotation.coords = coords
        return (found, len(coords) // 2)


def _outcome(kind: str, found: int, total: int) -> MappingOutcome:
    if found == total:
        return "mapped"
    LOGGER.debug("%d of %d x values of %s annotation have no sample in the visible window", total - found, total, kind)
    if found == 0:
        return "unmappable"
    return "partial"
