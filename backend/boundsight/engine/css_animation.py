"""CSS @keyframes envelope analyzer.

Keyframes come from every <style> block (``@keyframes`` and the ``-webkit-``
prefixed form, also inside ``@media`` / ``@supports``). For an element whose
``animation-name`` (or ``animation`` shorthand) names known keyframes, every
keyframe's ``transform`` is applied to the element's four corners about its
``transform-origin``; the envelope of all corners, starting from the base box,
is reported as a delta against the base box.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import TYPE_CHECKING

from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import BoundingBox, CssAnimation
from boundsight.engine.transforms import AffineTransform
from boundsight.svg import css

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

_KEYFRAMES_RE = re.compile(r"^@(?:-webkit-|-moz-)?keyframes\s+(['\"]?)([^\s'\"]+)\1$")
_NESTING_AT_RULES = ("@media", "@supports", "@layer", "@document")
_DIRECTIONS = {"normal", "reverse", "alternate", "alternate-reverse"}
_NUMBER_UNIT_RE = re.compile(r"^([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)([a-z%]*)$")
_ANGLE_TO_DEG = {"deg": 1.0, "": 1.0, "rad": 180 / math.pi, "grad": 0.9, "turn": 360.0}


@dataclass(frozen=True)
class CssKeyframe:
    percentage: float
    transform: str = "none"


# ── @keyframes discovery ──────────────────────────────────────────────────


def _keyframe_offsets(selector: str) -> list[float]:
    offsets = []
    for part in selector.split(","):
        part = part.strip().lower()
        if part == "from":
            offsets.append(0.0)
        elif part == "to":
            offsets.append(100.0)
        elif part.endswith("%"):
            try:
                offsets.append(float(part[:-1]))
            except ValueError:
                logger.debug("Bad keyframe selector %r", part)
    return offsets


def _parse_keyframes_body(body: str) -> list[CssKeyframe]:
    frames = []
    for selector, declarations in css.iter_blocks(body):
        decls = css.parse_declarations(declarations)
        transform = decls.get("transform") or decls.get("-webkit-transform") or "none"
        for offset in _keyframe_offsets(selector):
            frames.append(CssKeyframe(offset, transform))
    frames.sort(key=lambda kf: kf.percentage)
    return frames


def _collect_keyframes(text: str, found: dict[str, list[CssKeyframe]]) -> None:
    for prelude, body in css.iter_blocks(text):
        match = _KEYFRAMES_RE.match(prelude)
        if match:
            # Later definitions of the same name win
            found[match.group(2)] = _parse_keyframes_body(body)
        elif prelude.lower().startswith(_NESTING_AT_RULES):
            _collect_keyframes(body, found)


def parse_keyframes(css_text: str) -> dict[str, list[CssKeyframe]]:
    """All ``@keyframes`` in ``css_text``, keyed by animation name."""
    found: dict[str, list[CssKeyframe]] = {}
    _collect_keyframes(css.strip_comments(css_text or ""), found)
    return found


def animation_names(doc: SvgDocument, el: ET.Element) -> list[tuple[str, str]]:
    """(name, direction) for each animation applied to ``el``."""
    names = doc.get_computed_style_property(el, "animation-name")
    if names and names != "none":
        directions = [
            d.strip() for d in doc.get_computed_style_property(el, "animation-direction").split(",")
        ]
        result = []
        for i, name in enumerate(n.strip() for n in names.split(",")):
            direction = directions[i % len(directions)] if directions and directions[0] else "normal"
            if name and name != "none":
                result.append((name.strip("'\""), direction))
        return result

    shorthand = doc.get_computed_style_property(el, "animation")
    if not shorthand or shorthand == "none":
        return []
    known = doc.keyframes
    result = []
    for layer in css.split_top_level(shorthand, ","):
        tokens = layer.split()
        name = next((t.strip("'\"") for t in tokens if t.strip("'\"") in known), None)
        if name is None:
            logger.debug("animation shorthand %r names no known keyframes", layer)
            continue
        direction = next((t for t in tokens if t in _DIRECTIONS), "normal")
        result.append((name, direction))
    return result


def ordered_keyframes(keyframes: list[CssKeyframe], direction: str) -> list[CssKeyframe]:
    if direction == "reverse":
        return list(reversed(keyframes))
    if direction in ("alternate", "alternate-reverse"):
        return [*keyframes, *reversed(keyframes)]
    return list(keyframes)


# ── CSS transform functions ───────────────────────────────────────────────


def _split_args(args: str) -> list[str]:
    return [a for a in re.split(r"[\s,]+", args.strip()) if a]


def _length(token: str, reference: float) -> float:
    match = _NUMBER_UNIT_RE.match(token.strip().lower())
    if not match:
        return 0.0
    value = float(match.group(1))
    if match.group(2) == "%":
        return value / 100 * reference
    return value


def _angle(token: str) -> float:
    """Angle in degrees; unitless numbers are read as degrees."""
    match = _NUMBER_UNIT_RE.match(token.strip().lower())
    if not match:
        return 0.0
    return float(match.group(1)) * _ANGLE_TO_DEG.get(match.group(2), 1.0)


def _number(token: str, default: float) -> float:
    match = _NUMBER_UNIT_RE.match(token.strip())
    if not match:
        return default
    value = float(match.group(1))
    return value / 100 if match.group(2) == "%" else value


def _skew(ax: float, ay: float) -> AffineTransform:
    return AffineTransform(1.0, math.tan(math.radians(ay)), math.tan(math.radians(ax)), 1.0, 0.0, 0.0)


def _function_matrix(name: str, args: list[str], box: BoundingBox) -> AffineTransform | None:
    name = name.lower()
    if name in ("translate", "translate3d"):
        tx = _length(args[0], box.width) if args else 0.0
        ty = _length(args[1], box.height) if len(args) > 1 else 0.0
        return AffineTransform.translate(tx, ty)
    if name == "translatex":
        return AffineTransform.translate(_length(args[0], box.width) if args else 0.0, 0.0)
    if name == "translatey":
        return AffineTransform.translate(0.0, _length(args[0], box.height) if args else 0.0)
    if name in ("scale", "scale3d"):
        sx = _number(args[0], 1.0) if args else 1.0
        sy = _number(args[1], sx) if len(args) > 1 else sx
        return AffineTransform.scale(sx, sy)
    if name == "scalex":
        return AffineTransform.scale(_number(args[0], 1.0) if args else 1.0, 1.0)
    if name == "scaley":
        return AffineTransform.scale(1.0, _number(args[0], 1.0) if args else 1.0)
    if name in ("rotate", "rotatez"):
        return AffineTransform.rotate(_angle(args[0]) if args else 0.0)
    if name == "skew":
        return _skew(_angle(args[0]) if args else 0.0, _angle(args[1]) if len(args) > 1 else 0.0)
    if name == "skewx":
        return AffineTransform.skew_x(_angle(args[0]) if args else 0.0)
    if name == "skewy":
        return AffineTransform.skew_y(_angle(args[0]) if args else 0.0)
    if name == "matrix":
        values = [_number(a, 0.0) for a in args[:6]]
        if len(values) < 6:
            return None
        return AffineTransform(*values)
    return None


def parse_css_transform(text: str | None, box: BoundingBox) -> AffineTransform:
    """Compose a CSS transform list; the rightmost function applies to points first.

    Percentages in translations resolve against ``box``.
    """
    matrix = AffineTransform.identity()
    if not text or text.strip() == "none":
        return matrix
    for name, args in css.iter_functions(text):
        fn = _function_matrix(name, _split_args(args), box)
        if fn is None:
            logger.debug("Ignoring CSS transform function %s(%s)", name, args)
            continue
        matrix = matrix.multiply(fn)
    return matrix


# ── transform-origin ──────────────────────────────────────────────────────


def parse_origin_value(value: str, start: float, dimension: float) -> float:
    """Coordinate of one ``transform-origin`` component.

    Keywords and percentages are relative to the box edge starting at
    ``start``. Lengths are user-space positions, as in the two-length form.
    """
    value = value.strip().lower()
    if value.endswith("%"):
        return start + _number(value, 0.5) * dimension
    if value in ("left", "top"):
        return start
    if value in ("right", "bottom"):
        return start + dimension
    if value == "center":
        return start + dimension / 2
    match = _NUMBER_UNIT_RE.match(value)
    if match:
        return float(match.group(1))
    return start + dimension / 2


def _pixel_origin(x_px: float, y_px: float, box: BoundingBox, tolerance: float) -> tuple[float, float]:
    """Undo user-agent quirks that report keyword origins as absolute pixels."""

    def near(px: float, py: float) -> bool:
        return abs(x_px - px) < tolerance and abs(y_px - py) < tolerance

    cx, cy = box.center
    if x_px == 0 and y_px == 0:
        return box.x, box.y
    if (
        near(cx, cy)
        or near(box.max_x, box.max_y)
        or near(box.max_x + box.width / 2, box.max_y + box.height / 2)
        or near(box.x + 50, box.y + 50)
    ):
        return cx, cy
    return x_px, y_px


def resolve_origin(raw: str | None, box: BoundingBox, tolerance: float = 1.0) -> tuple[float, float]:
    """Absolute pivot point for a ``transform-origin`` value on ``box``."""
    parts = (raw or "").split()[:2] or ["50%", "50%"]

    if all(p.lower().endswith("px") for p in parts) and len(parts) == 2:
        return _pixel_origin(_number(parts[0], 0.0), _number(parts[1], 0.0), box, tolerance)

    if len(parts) == 1:
        if parts[0] in ("top", "bottom"):
            parts = ["center", parts[0]]
        else:
            parts = [parts[0], "center"]
    elif parts[0] in ("top", "bottom") or parts[1] in ("left", "right"):
        parts = [parts[1], parts[0]]

    return (
        parse_origin_value(parts[0], box.x, box.width),
        parse_origin_value(parts[1], box.y, box.height),
    )


# ── Envelope ──────────────────────────────────────────────────────────────


def keyframe_envelope(
    base: BoundingBox, keyframes: list[CssKeyframe], origin: tuple[float, float]
) -> BoundingBox:
    ox, oy = origin
    to_origin = AffineTransform.translate(-ox, -oy)
    from_origin = AffineTransform.translate(ox, oy)
    envelope = base
    for kf in keyframes:
        if not kf.transform or kf.transform == "none":
            continue
        matrix = from_origin.multiply(parse_css_transform(kf.transform, base)).multiply(to_origin)
        envelope = envelope.union(matrix.transform_bounds(base))
    return envelope


def expansion_delta(base: BoundingBox, envelope: BoundingBox) -> BoundingBox:
    """(left shift, top shift, width growth, height growth) of ``envelope`` over ``base``."""
    return BoundingBox(
        envelope.x - base.x,
        envelope.y - base.y,
        envelope.width - base.width,
        envelope.height - base.height,
    )


def analyze_css_animation(
    doc: SvgDocument,
    el: ET.Element,
    base: BoundingBox,
    config: AnalysisConfig | None = None,
) -> list[CssAnimation]:
    config = config or AnalysisConfig()
    applied = animation_names(doc, el)
    if not applied:
        return []

    origin = resolve_origin(
        doc.get_computed_style_property(el, "transform-origin"), base, config.origin_quirk_tolerance
    )
    results = []
    for name, direction in applied:
        keyframes = doc.keyframes.get(name)
        if not keyframes:
            logger.debug("No @keyframes %r for %s", name, doc.element_id(el))
            continue
        envelope = keyframe_envelope(base, ordered_keyframes(keyframes, direction), origin)
        delta = expansion_delta(base, envelope)
        logger.debug(
            "CSS animation %s on %s: %d keyframes, delta %s",
            name, doc.element_id(el), len(keyframes), delta.as_tuple(),
        )
        results.append(CssAnimation(name=name, keyframe_count=len(keyframes), expansion=delta))
    return results
