"""Animation combiner — folds every animation on one element into a single envelope.

Order of operations:
1. Partition into geometric, stroke-width and other animations.
2. Non-additive transform keyframes each replace the element's transform;
   additive ones are multiplied together at every keyframe time any of them uses.
3. cx/cy/r/rx/ry animations share one independent-extremes circle envelope.
4. The geometric envelope is the union of the static box and all of the above.
5. Half the widest stroke, and any filter growth, pad each candidate box in the
   element's user space before its matrix maps it, so scaled strokes scale too.

Boxes come out in the parent coordinate space of the element: the caller's
``ancestor_transform`` is the last matrix applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from boundsight.engine.context import (
    AnimationDescriptor,
    AttributeAnimation,
    AttributeValue,
    BoundingBox,
    CssAnimation,
    MotionAnimation,
    PathDataValue,
    SetAnimation,
    TransformAnimation,
    TransformKeyframe,
    union_all,
)
from boundsight.engine.effects import ElementEffects, expand_for_effects
from boundsight.engine.timing import leading_number
from boundsight.engine.transforms import AffineTransform, parse_transform

logger = logging.getLogger(__name__)

GEOMETRIC_ATTRIBUTES = {"x", "y", "width", "height", "cx", "cy", "r", "rx", "ry", "d", "transform"}
CIRCLE_ATTRIBUTES = {"cx", "cy", "r", "rx", "ry"}
STROKE_ATTRIBUTES = {"stroke-width"}

Paint = Callable[[BoundingBox], BoundingBox]


def _attribute_name(anim: AnimationDescriptor) -> str | None:
    if isinstance(anim, (AttributeAnimation, SetAnimation)):
        return anim.attribute_name
    return None


def partition(
    animations: Iterable[AnimationDescriptor],
) -> tuple[list[AnimationDescriptor], list[AnimationDescriptor], list[AnimationDescriptor]]:
    """Split into (geometric, stroke, other)."""
    geometric: list[AnimationDescriptor] = []
    stroke: list[AnimationDescriptor] = []
    other: list[AnimationDescriptor] = []
    for anim in animations:
        name = _attribute_name(anim)
        if name is None:
            geometric.append(anim)
        elif name in GEOMETRIC_ATTRIBUTES:
            geometric.append(anim)
        elif name in STROKE_ATTRIBUTES:
            stroke.append(anim)
        else:
            other.append(anim)
    return geometric, stroke, other


def apply_attribute(base: BoundingBox, name: str, value: float) -> BoundingBox:
    """Box after one geometric attribute takes ``value``.

    Paint and opacity attributes (and stroke-width, which is applied later)
    leave the box unchanged.
    """
    cx, cy = base.center
    if name == "x":
        return BoundingBox(value, base.y, base.width, base.height)
    if name == "y":
        return BoundingBox(base.x, value, base.width, base.height)
    if name == "width":
        return BoundingBox(base.x, base.y, max(0.0, value), base.height)
    if name == "height":
        return BoundingBox(base.x, base.y, base.width, max(0.0, value))
    if name == "cx":
        return BoundingBox(value - base.width / 2, base.y, base.width, base.height)
    if name == "cy":
        return BoundingBox(base.x, value - base.height / 2, base.width, base.height)
    if name == "r":
        r = abs(value)
        return BoundingBox(cx - r, cy - r, 2 * r, 2 * r)
    if name == "rx":
        rx = abs(value)
        return BoundingBox(cx - rx, base.y, 2 * rx, base.height)
    if name == "ry":
        ry = abs(value)
        return BoundingBox(base.x, cy - ry, base.width, 2 * ry)
    return base


def find_at_time(keyframes: Sequence[TransformKeyframe], time: float) -> TransformKeyframe | None:
    """Exact match, else the latest keyframe at or before ``time``, else the earliest."""
    if not keyframes:
        return None
    before: TransformKeyframe | None = None
    for kf in keyframes:
        if kf.time == time:
            return kf
        if kf.time <= time and (before is None or kf.time > before.time):
            before = kf
    if before is not None:
        return before
    return min(keyframes, key=lambda kf: kf.time)


def _values_of(anim: AnimationDescriptor) -> list[float]:
    if isinstance(anim, AttributeAnimation):
        return anim.numeric_values()
    if isinstance(anim, SetAnimation):
        number = leading_number(anim.to)
        return [number] if number is not None else []
    return []


def circle_envelope(base: BoundingBox, animations: Iterable[AnimationDescriptor]) -> BoundingBox:
    """Extremes of every cx, cy and radius value, combined independently.

    Which center pairs with which radius at a given instant is not modelled,
    so correlated keyframes can overestimate.
    """
    center_x, center_y = base.center
    cx = {center_x}
    cy = {center_y}
    rx = {base.width / 2}
    ry = {base.height / 2}
    for anim in animations:
        name = _attribute_name(anim)
        values = _values_of(anim)
        if name == "cx":
            cx.update(values)
        elif name == "cy":
            cy.update(values)
        elif name == "r":
            rx.update(abs(v) for v in values)
            ry.update(abs(v) for v in values)
        elif name == "rx":
            rx.update(abs(v) for v in values)
        elif name == "ry":
            ry.update(abs(v) for v in values)
    max_rx = max(rx)
    max_ry = max(ry)
    return BoundingBox.from_extents(min(cx) - max_rx, min(cy) - max_ry, max(cx) + max_rx, max(cy) + max_ry)


def _transform_boxes(anim: TransformAnimation, painted: BoundingBox, ancestor: AffineTransform) -> list[BoundingBox]:
    # A non-additive animateTransform replaces the element's own transform
    return [ancestor.multiply(kf.matrix).transform_bounds(painted) for kf in anim.keyframes]


def _additive_boxes(
    animations: list[TransformAnimation], painted: BoundingBox, static: AffineTransform
) -> list[BoundingBox]:
    times = sorted({kf.time for anim in animations for kf in anim.keyframes})
    boxes = []
    for time in times:
        matrix = static
        for anim in animations:
            kf = find_at_time(anim.keyframes, time)
            if kf is not None:
                matrix = matrix.multiply(kf.matrix)
        boxes.append(matrix.transform_bounds(painted))
    return boxes


def _attribute_boxes(
    anim: AttributeAnimation | SetAnimation,
    base: BoundingBox,
    local: AffineTransform,
    ancestor: AffineTransform,
    paint: Paint,
) -> list[BoundingBox]:
    name = anim.attribute_name
    static = ancestor.multiply(local)

    if isinstance(anim, SetAnimation):
        raw_values: list = [anim.to]
    else:
        raw_values = [kf.value for kf in anim.values]

    boxes = []
    for value in raw_values:
        if isinstance(value, PathDataValue):
            boxes.append(static.transform_bounds(paint(value.bounds.to_box())))
            continue
        if isinstance(value, AttributeValue):
            value = value.value
        if name == "transform":
            boxes.append(ancestor.multiply(parse_transform(str(value))).transform_bounds(paint(base)))
            continue
        number = value if isinstance(value, float) else leading_number(str(value))
        if number is None:
            logger.debug("Non-numeric %s value %r ignored", name, value)
            continue
        boxes.append(static.transform_bounds(paint(apply_attribute(base, name, number))))
    return boxes


def _motion_box(anim: MotionAnimation, base: BoundingBox, local: AffineTransform, ancestor: AffineTransform) -> BoundingBox:
    # animateMotion translates in the parent space, on top of the element's transform
    placed = local.transform_bounds(base)
    motion = anim.rotation_expanded_bounds
    shifted = BoundingBox.from_extents(
        placed.x + motion.min_x,
        placed.y + motion.min_y,
        placed.max_x + motion.max_x,
        placed.max_y + motion.max_y,
    )
    return ancestor.transform_bounds(shifted)


def _css_box(anim: CssAnimation, base: BoundingBox, ancestor: AffineTransform) -> BoundingBox:
    delta = anim.expansion
    return ancestor.transform_bounds(
        BoundingBox.from_extents(
            base.x + delta.x,
            base.y + delta.y,
            base.max_x + delta.x + delta.width,
            base.max_y + delta.y + delta.height,
        )
    )


def stroke_expansion(stroke: Iterable[AnimationDescriptor], static_width: float = 0.0) -> float:
    """Half of the widest stroke the element can have."""
    widest = max(0.0, static_width)
    for anim in stroke:
        for value in _values_of(anim):
            widest = max(widest, value)
    return widest / 2


def combine(
    animations: Sequence[AnimationDescriptor],
    base_bounds: BoundingBox,
    *,
    local_transform: AffineTransform | None = None,
    ancestor_transform: AffineTransform | None = None,
    stroke_width: float = 0.0,
    effects: ElementEffects | None = None,
) -> BoundingBox:
    """Envelope of ``base_bounds`` over every animation on one element.

    The static (unanimated) transformed box is always part of the union, so
    the result never shrinks below it. Stroke and ``effects`` grow each
    candidate box in the element's user space, before its matrix.
    """
    local = local_transform or AffineTransform.identity()
    ancestor = ancestor_transform or AffineTransform.identity()
    static_matrix = ancestor.multiply(local)

    geometric, stroke, other = partition(animations)
    half = stroke_expansion(stroke, stroke_width)

    def paint(box: BoundingBox) -> BoundingBox:
        if half:
            box = box.expand(half, half, half, half)
        if effects is not None:
            box = expand_for_effects(effects, box)
        return box

    painted = paint(base_bounds)
    static_box = static_matrix.transform_bounds(painted)
    if not geometric:
        return static_box

    candidates: list[BoundingBox] = [static_box]

    additive = [a for a in geometric if isinstance(a, TransformAnimation) and a.additive]
    if additive:
        candidates.extend(_additive_boxes(additive, painted, static_matrix))

    circle = [a for a in geometric if _attribute_name(a) in CIRCLE_ATTRIBUTES]
    if circle:
        envelope = circle_envelope(base_bounds, circle)
        logger.debug("Circle envelope %s", envelope.as_tuple())
        candidates.append(static_matrix.transform_bounds(paint(envelope)))

    for anim in geometric:
        if isinstance(anim, TransformAnimation):
            if not anim.additive:
                candidates.extend(_transform_boxes(anim, painted, ancestor))
        elif isinstance(anim, MotionAnimation):
            candidates.append(_motion_box(anim, painted, local, ancestor))
        elif isinstance(anim, CssAnimation):
            candidates.append(_css_box(anim, painted, ancestor))
        elif _attribute_name(anim) not in CIRCLE_ATTRIBUTES:
            candidates.extend(_attribute_boxes(anim, base_bounds, local, ancestor, paint))

    envelope = union_all(candidates) or static_box

    # Opacity-class animations never move geometry
    if other:
        envelope = envelope.union(static_box)
    return envelope
