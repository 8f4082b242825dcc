"""Affine transform algebra — 2D matrices, composition, point and box mapping.

A matrix (a, b, c, d, e, f) maps x' = a*x + c*y + e, y' = b*x + d*y + f.
``m1.multiply(m2)`` applies m2 first, so the cumulative matrix of a node is
``parent_cumulative.multiply(node_local)``.

NaN coefficients are not sanitized; they propagate to every mapped point.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from boundsight.engine.context import (
    BoundingBox,
    MatrixValue,
    NormalizedValue,
    RotateValue,
    ScaleValue,
    SkewXValue,
    SkewYValue,
    TranslateValue,
)
from boundsight.utils.geometry import apply_affine, bbox, parse_number_list

logger = logging.getLogger(__name__)

_TRANSFORM_FN_RE = re.compile(r"(\w+)\s*\(([^)]*)\)")
_IDENTITY_EPS = 1e-12


@dataclass(frozen=True)
class AffineTransform:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> AffineTransform:
        return cls()

    @classmethod
    def translate(cls, tx: float, ty: float = 0.0) -> AffineTransform:
        return cls(1.0, 0.0, 0.0, 1.0, tx, ty)

    @classmethod
    def scale(cls, sx: float, sy: float | None = None) -> AffineTransform:
        return cls(sx, 0.0, 0.0, sx if sy is None else sy, 0.0, 0.0)

    @classmethod
    def rotate(cls, angle: float, cx: float = 0.0, cy: float = 0.0) -> AffineTransform:
        """Rotation in degrees about (cx, cy)."""
        rad = math.radians(angle)
        cos, sin = math.cos(rad), math.sin(rad)
        rotation = cls(cos, sin, -sin, cos, 0.0, 0.0)
        if cx == 0 and cy == 0:
            return rotation
        return cls.translate(cx, cy).multiply(rotation).multiply(cls.translate(-cx, -cy))

    @classmethod
    def skew_x(cls, angle: float) -> AffineTransform:
        return cls(1.0, 0.0, math.tan(math.radians(angle)), 1.0, 0.0, 0.0)

    @classmethod
    def skew_y(cls, angle: float) -> AffineTransform:
        return cls(1.0, math.tan(math.radians(angle)), 0.0, 1.0, 0.0, 0.0)

    def multiply(self, other: AffineTransform) -> AffineTransform:
        """Return self * other: ``other`` is applied to a point first."""
        return AffineTransform(
            self.a * other.a + self.c * other.b,
            self.b * other.a + self.d * other.b,
            self.a * other.c + self.c * other.d,
            self.b * other.c + self.d * other.d,
            self.a * other.e + self.c * other.f + self.e,
            self.b * other.e + self.d * other.f + self.f,
        )

    def transform_point(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    def transform_bounds(self, box: BoundingBox) -> BoundingBox:
        """Map all four corners and return their axis-aligned bounding box."""
        mapped = apply_affine(box.corners(), self.a, self.b, self.c, self.d, self.e, self.f)
        return BoundingBox.from_extents(*bbox(mapped))

    def is_identity(self) -> bool:
        return all(
            abs(v - ref) < _IDENTITY_EPS
            for v, ref in zip(self.as_tuple(), (1.0, 0.0, 0.0, 1.0, 0.0, 0.0))
        )

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


def transform_from_value(value: NormalizedValue) -> AffineTransform:
    """Build the matrix matching a normalized transform value.

    Non-transform variants (attribute, path, motion) map to identity.
    """
    if isinstance(value, TranslateValue):
        return AffineTransform.translate(value.x, value.y)
    if isinstance(value, ScaleValue):
        return AffineTransform.scale(value.x, value.y)
    if isinstance(value, RotateValue):
        return AffineTransform.rotate(value.angle, value.cx, value.cy)
    if isinstance(value, SkewXValue):
        return AffineTransform.skew_x(value.angle)
    if isinstance(value, SkewYValue):
        return AffineTransform.skew_y(value.angle)
    if isinstance(value, MatrixValue):
        return AffineTransform(value.a, value.b, value.c, value.d, value.e, value.f)
    logger.debug("No matrix for %s, using identity", type(value).__name__)
    return AffineTransform.identity()


def transform_value(kind: str, args: list[float]) -> NormalizedValue | None:
    """Normalize one transform function's arguments. Unknown kinds give None."""
    kind = kind.lower()
    if kind == "translate":
        return TranslateValue(args[0] if args else 0.0, args[1] if len(args) > 1 else 0.0)
    if kind == "scale":
        sx = args[0] if args else 1.0
        return ScaleValue(sx, args[1] if len(args) > 1 else sx)
    if kind == "rotate":
        if len(args) >= 3:
            return RotateValue(args[0], args[1], args[2])
        return RotateValue(args[0] if args else 0.0)
    if kind == "skewx":
        return SkewXValue(args[0] if args else 0.0)
    if kind == "skewy":
        return SkewYValue(args[0] if args else 0.0)
    if kind == "matrix":
        padded = list(args[:6]) + [1.0, 0.0, 0.0, 1.0, 0.0, 0.0][len(args[:6]):]
        return MatrixValue(*padded)
    return None


def parse_transform(text: str | None) -> AffineTransform:
    """Parse an SVG ``transform`` attribute into one matrix.

    Functions compose left to right, so the rightmost one touches points first.
    Unknown functions contribute identity.
    """
    result = AffineTransform.identity()
    if not text:
        return result
    for match in _TRANSFORM_FN_RE.finditer(text):
        value = transform_value(match.group(1), parse_number_list(match.group(2)))
        if value is None:
            logger.debug("Ignoring unknown transform function %r", match.group(1))
            continue
        result = result.multiply(transform_from_value(value))
    return result


# ── Viewports ─────────────────────────────────────────────────────────────


def parse_viewbox(text: str | None) -> BoundingBox | None:
    nums = parse_number_list(text)
    if len(nums) < 4 or nums[2] < 0 or nums[3] < 0:
        return None
    return BoundingBox(nums[0], nums[1], nums[2], nums[3])


def parse_preserve_aspect_ratio(text: str | None) -> tuple[str, str]:
    """Return (align, meet_or_slice), defaulting to ("xMidYMid", "meet")."""
    parts = (text or "").split()
    if parts and parts[0] == "defer":
        parts = parts[1:]
    align = parts[0] if parts else "xMidYMid"
    meet_or_slice = parts[1] if len(parts) > 1 and parts[1] in ("meet", "slice") else "meet"
    return align, meet_or_slice


def aspect_ratio_transform(
    viewbox: BoundingBox,
    x: float,
    y: float,
    width: float,
    height: float,
    preserve_aspect_ratio: str | None = None,
) -> AffineTransform:
    """Map a viewBox into the viewport rectangle (x, y, width, height)."""
    if viewbox.width <= 0 or viewbox.height <= 0:
        return AffineTransform.translate(x, y)

    align, meet_or_slice = parse_preserve_aspect_ratio(preserve_aspect_ratio)
    sx = width / viewbox.width
    sy = height / viewbox.height
    tx = ty = 0.0

    if align != "none":
        s = min(sx, sy) if meet_or_slice == "meet" else max(sx, sy)
        sx = sy = s
        extra_x = width - viewbox.width * s
        extra_y = height - viewbox.height * s
        if "xMid" in align:
            tx = extra_x / 2
        elif "xMax" in align:
            tx = extra_x
        if "YMid" in align:
            ty = extra_y / 2
        elif "YMax" in align:
            ty = extra_y

    return (
        AffineTransform.translate(x + tx, y + ty)
        .multiply(AffineTransform.scale(sx, sy))
        .multiply(AffineTransform.translate(-viewbox.x, -viewbox.y))
    )
