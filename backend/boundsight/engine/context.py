"""Data model shared by every stage of the bounds engine.

Everything here is created fresh per analysis pass and never mutated after
construction. Boxes are folded with ``union_optional`` starting from ``None``
so an empty document never picks up a phantom origin point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Union

import numpy as np

from boundsight.utils.geometry import as_points, bbox

if TYPE_CHECKING:
    from boundsight.engine.transforms import AffineTransform


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in user units. Width and height are never negative."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_extents(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> BoundingBox:
        lo_x, hi_x = min(min_x, max_x), max(min_x, max_x)
        lo_y, hi_y = min(min_y, max_y), max(min_y, max_y)
        return cls(lo_x, lo_y, hi_x - lo_x, hi_y - lo_y)

    @classmethod
    def from_points(cls, points) -> BoundingBox | None:
        pts = as_points(points)
        if len(pts) == 0:
            return None
        return cls.from_extents(*bbox(pts))

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def corners(self) -> np.ndarray:
        return as_points([
            (self.x, self.y),
            (self.max_x, self.y),
            (self.max_x, self.max_y),
            (self.x, self.max_y),
        ])

    def union(self, other: BoundingBox) -> BoundingBox:
        return BoundingBox.from_extents(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def expand(self, left: float, top: float, right: float, bottom: float) -> BoundingBox:
        return BoundingBox.from_extents(
            self.x - left, self.y - top, self.max_x + right, self.max_y + bottom
        )

    def translate(self, dx: float, dy: float) -> BoundingBox:
        return BoundingBox(self.x + dx, self.y + dy, self.width, self.height)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def union_optional(a: BoundingBox | None, b: BoundingBox | None) -> BoundingBox | None:
    """Union where ``None`` means "no content" and is the identity."""
    if a is None:
        return b
    if b is None:
        return a
    return a.union(b)


def union_all(boxes: Iterable[BoundingBox | None]) -> BoundingBox | None:
    result: BoundingBox | None = None
    for box in boxes:
        result = union_optional(result, box)
    return result


@dataclass(frozen=True)
class PathBounds:
    """Extents of path data, in the order the path parser reports them."""

    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0

    def to_box(self) -> BoundingBox:
        return BoundingBox.from_extents(self.min_x, self.min_y, self.max_x, self.max_y)

    def padded(self, pad: float) -> PathBounds:
        return PathBounds(self.min_x - pad, self.max_x + pad, self.min_y - pad, self.max_y + pad)


# ── Normalized keyframe values ────────────────────────────────────────────


@dataclass(frozen=True)
class TranslateValue:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ScaleValue:
    x: float = 1.0
    y: float = 1.0


@dataclass(frozen=True)
class RotateValue:
    angle: float = 0.0
    cx: float = 0.0
    cy: float = 0.0


@dataclass(frozen=True)
class SkewXValue:
    angle: float = 0.0


@dataclass(frozen=True)
class SkewYValue:
    angle: float = 0.0


@dataclass(frozen=True)
class MatrixValue:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0


@dataclass(frozen=True)
class AttributeValue:
    name: str
    # float when the text parses as a number, otherwise the raw text
    value: float | str


@dataclass(frozen=True)
class PathDataValue:
    raw: str
    bounds: PathBounds


@dataclass(frozen=True)
class MotionValue:
    raw: str
    bounds: PathBounds


NormalizedValue = Union[
    TranslateValue,
    ScaleValue,
    RotateValue,
    SkewXValue,
    SkewYValue,
    MatrixValue,
    AttributeValue,
    PathDataValue,
    MotionValue,
]


@dataclass(frozen=True)
class Keyframe:
    time: float
    value: NormalizedValue
    spline: str | None = None
    calc_mode: str = "linear"


@dataclass(frozen=True)
class AnimationTiming:
    # Milliseconds; math.inf stands for "indefinite"
    duration: float = float("inf")
    repeat_count: float = 1.0
    begin_ms: float = 0.0
    # Event and syncbase begins are normalized to begin_ms = 0
    is_event_or_syncbase_based: bool = False
    end_ms: float | None = None
    begin_raw: str = "0s"


# ── Animation descriptors ─────────────────────────────────────────────────


@dataclass(frozen=True)
class TransformKeyframe:
    time: float
    matrix: AffineTransform
    raw: NormalizedValue


@dataclass(frozen=True)
class TransformAnimation:
    transform_type: str
    additive: bool
    timing: AnimationTiming
    keyframes: tuple[TransformKeyframe, ...] = ()


@dataclass(frozen=True)
class AttributeAnimation:
    attribute_name: str
    timing: AnimationTiming
    values: tuple[Keyframe, ...] = ()

    def numeric_values(self) -> list[float]:
        return [
            kf.value.value
            for kf in self.values
            if isinstance(kf.value, AttributeValue) and isinstance(kf.value.value, float)
        ]


@dataclass(frozen=True)
class MotionAnimation:
    timing: AnimationTiming
    rotate: str
    motion_bounds: PathBounds
    rotation_expanded_bounds: PathBounds


@dataclass(frozen=True)
class SetAnimation:
    attribute_name: str
    to: str
    # Seconds from document start; event begins carry only their offset
    begin_time: float
    is_event_based: bool
    timing: AnimationTiming = field(default_factory=AnimationTiming)


@dataclass(frozen=True)
class CssAnimation:
    name: str
    keyframe_count: int
    # Delta relative to the base box: (left shift, top shift, width growth, height growth)
    expansion: BoundingBox


AnimationDescriptor = Union[
    TransformAnimation,
    AttributeAnimation,
    MotionAnimation,
    SetAnimation,
    CssAnimation,
]


@dataclass(frozen=True)
class ElementBoundsResult:
    """Per-element output unit folded into the document union."""

    element_id: str
    tag: str
    base_bounds: BoundingBox
    transformed_bounds: BoundingBox
    animated_bounds: BoundingBox
    effect_expanded_bounds: BoundingBox
    has_animations: bool = False
    has_effects: bool = False
    animation_count: int = 0
