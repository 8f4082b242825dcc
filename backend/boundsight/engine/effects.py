"""Filter, mask, clip-path and pattern-paint effects.

Filters grow the painted area: a referenced <filter> contributes either a pixel
expansion from its primitives (blur, offset, drop shadow, dilate) or, when the
primitives add nothing, its filter region: a percentage overhang of the element
box, or an absolute box under ``filterUnits="userSpaceOnUse"``. CSS filter
functions ``blur()`` and ``drop-shadow()`` always give pixel expansions. All of
these are in the element's user space, before any transform.

A <pattern> used as fill or stroke can draw content past its tile; that
overhang grows the element box on each side the same way.

Masks and clip paths are flagged but never intersected; the element keeps its
full unclipped bounds so nothing is ever cropped.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import BoundingBox, union_all
from boundsight.engine.transforms import AffineTransform, aspect_ratio_transform, parse_transform, parse_viewbox
from boundsight.svg import css
from boundsight.svg.geometry import NON_RENDERING_TAGS, local_transform
from boundsight.utils.geometry import parse_number_list, to_float

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

FILTER_PRIMITIVES = ("feGaussianBlur", "feDropShadow", "feOffset", "feMorphology")
_PX_RE = re.compile(r"(-?\d*\.?\d+)px")


@dataclass(frozen=True)
class FilterExpansion:
    """Left/top growth in ``x``/``y``, total growth in ``width``/``height``.

    Pixel-based values are user units; otherwise they are fractions of the
    element's own width and height. ``region`` is an absolute user-space
    filter region the painted area can reach.
    """

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    is_pixel_based: bool = False
    region: BoundingBox | None = None

    @property
    def is_zero(self) -> bool:
        return self.region is None and self.x == 0 and self.y == 0 and self.width == 0 and self.height == 0


@dataclass(frozen=True)
class ElementEffects:
    has_filter: bool = False
    filter_expansion: FilterExpansion = field(default_factory=FilterExpansion)
    has_mask: bool = False
    has_clip_path: bool = False
    pattern_overflow: FilterExpansion = field(default_factory=FilterExpansion)

    @property
    def preserve_full_bounds(self) -> bool:
        return self.has_mask or self.has_clip_path

    @property
    def has_pattern_overflow(self) -> bool:
        return not self.pattern_overflow.is_zero

    @property
    def grows_bounds(self) -> bool:
        return self.has_filter or self.has_pattern_overflow

    @property
    def has_any_effects(self) -> bool:
        return self.has_filter or self.has_mask or self.has_clip_path or self.has_pattern_overflow


def resolve_effect_value(doc: SvgDocument, el: ET.Element, prop: str) -> str | None:
    """Attribute, then inline style, then stylesheet value; ``none`` means absent."""
    for value in (
        doc.get_attribute(el, prop),
        doc.get_style_property(el, prop),
        doc.get_computed_style_property(el, prop),
    ):
        if value and value.strip() and value.strip() != "none":
            return value.strip()
    return None


# ── <filter> definitions ──────────────────────────────────────────────────


def _region_fraction(raw: str | None, default: str) -> float:
    """Filter region component as a fraction of the element box."""
    text = (raw or default).strip()
    if text.endswith("%"):
        return to_float(text[:-1]) / 100
    return to_float(text)


def _primitive_std_deviation(doc: SvgDocument, primitive: ET.Element, default: float) -> float:
    values = parse_number_list(doc.get_attribute(primitive, "stdDeviation"))
    return max(values) if values else default


def _user_space_region(doc: SvgDocument, filter_el: ET.Element, config: AnalysisConfig) -> BoundingBox | None:
    """Absolute filter region. Missing components are percentages of the viewport."""
    vb = doc.viewbox
    vw, vh = (vb.width, vb.height) if vb else (0.0, 0.0)
    x = doc.length(filter_el, "x", "x", _region_fraction(None, config.filter_region_x) * vw)
    y = doc.length(filter_el, "y", "y", _region_fraction(None, config.filter_region_y) * vh)
    width = doc.length(filter_el, "width", "x", _region_fraction(None, config.filter_region_width) * vw)
    height = doc.length(filter_el, "height", "y", _region_fraction(None, config.filter_region_height) * vh)
    if width <= 0 or height <= 0:
        return None
    return BoundingBox(x, y, width, height)


def analyze_filter_definition(
    doc: SvgDocument, filter_el: ET.Element, config: AnalysisConfig | None = None
) -> FilterExpansion:
    config = config or AnalysisConfig()
    factor = config.blur_extent_factor

    blur = 0.0
    dilate = 0.0
    left = right = top = bottom = 0.0
    for primitive in filter_el.iter():
        tag = doc.tag(primitive)
        if tag not in FILTER_PRIMITIVES:
            continue
        if tag == "feGaussianBlur":
            blur = max(blur, factor * _primitive_std_deviation(doc, primitive, 0.0))
        elif tag == "feDropShadow":
            dx = to_float(doc.get_attribute(primitive, "dx"), 2.0)
            dy = to_float(doc.get_attribute(primitive, "dy"), 2.0)
            blur = max(blur, factor * _primitive_std_deviation(doc, primitive, 2.0))
            left, right = left + max(0.0, -dx), right + max(0.0, dx)
            top, bottom = top + max(0.0, -dy), bottom + max(0.0, dy)
        elif tag == "feOffset":
            dx = to_float(doc.get_attribute(primitive, "dx"))
            dy = to_float(doc.get_attribute(primitive, "dy"))
            left, right = left + max(0.0, -dx), right + max(0.0, dx)
            top, bottom = top + max(0.0, -dy), bottom + max(0.0, dy)
        elif tag == "feMorphology" and doc.get_attribute(primitive, "operator") == "dilate":
            radii = parse_number_list(doc.get_attribute(primitive, "radius"))
            dilate = max(dilate, max(radii) if radii else 0.0)

    pad = blur + dilate
    pixel = FilterExpansion(
        x=left + pad,
        y=top + pad,
        width=left + right + 2 * pad,
        height=top + bottom + 2 * pad,
        is_pixel_based=True,
    )
    if not pixel.is_zero:
        logger.debug("Filter #%s pixel expansion %s", filter_el.get("id"), pixel)
        return pixel

    if doc.get_attribute(filter_el, "filterUnits") == "userSpaceOnUse":
        region = _user_space_region(doc, filter_el, config)
        logger.debug("Filter #%s user-space region %s", filter_el.get("id"), region)
        return FilterExpansion(region=region)

    rx = _region_fraction(doc.get_attribute(filter_el, "x"), config.filter_region_x)
    ry = _region_fraction(doc.get_attribute(filter_el, "y"), config.filter_region_y)
    rw = _region_fraction(doc.get_attribute(filter_el, "width"), config.filter_region_width)
    rh = _region_fraction(doc.get_attribute(filter_el, "height"), config.filter_region_height)
    grow_left = max(0.0, -rx)
    grow_top = max(0.0, -ry)
    grow_right = max(0.0, rx + rw - 1)
    grow_bottom = max(0.0, ry + rh - 1)
    return FilterExpansion(
        x=grow_left,
        y=grow_top,
        width=grow_left + grow_right,
        height=grow_top + grow_bottom,
    )


# ── CSS filter functions ──────────────────────────────────────────────────


def analyze_css_filters(text: str, config: AnalysisConfig | None = None) -> FilterExpansion:
    config = config or AnalysisConfig()
    factor = config.blur_extent_factor
    x = y = width = height = 0.0

    for name, args in css.iter_functions(text):
        name = name.lower()
        if name == "blur":
            grow = factor * to_float(args.replace("px", "").strip() or "0")
            x, y = max(x, grow), max(y, grow)
            width, height = max(width, 2 * grow), max(height, 2 * grow)
        elif name == "drop-shadow":
            # Only px lengths count; colors such as rgba(...) are skipped
            lengths = [float(v) for v in _PX_RE.findall(args)]
            dx = lengths[0] if lengths else 0.0
            dy = lengths[1] if len(lengths) > 1 else 0.0
            grow = factor * (lengths[2] if len(lengths) > 2 else 0.0)
            left = max(0.0, -dx) + grow
            right = max(0.0, dx) + grow
            top = max(0.0, -dy) + grow
            bottom = max(0.0, dy) + grow
            x, y = max(x, left), max(y, top)
            width, height = max(width, left + right), max(height, top + bottom)

    return FilterExpansion(x, y, width, height, is_pixel_based=True)


# ── <pattern> paint ───────────────────────────────────────────────────────


def _pattern_chain(doc: SvgDocument, pattern: ET.Element) -> list[ET.Element]:
    """The pattern followed by the patterns it inherits from through href."""
    chain = [pattern]
    target = doc.resolve_href(doc.href(pattern))
    while target is not None and doc.tag(target) == "pattern" and target not in chain:
        chain.append(target)
        target = doc.resolve_href(doc.href(target))
    return chain


def _pattern_attr(doc: SvgDocument, chain: list[ET.Element], name: str) -> str | None:
    for pattern in chain:
        value = doc.get_attribute(pattern, name)
        if value is not None:
            return value
    return None


def _pattern_children(doc: SvgDocument, chain: list[ET.Element]) -> list[ET.Element]:
    for pattern in chain:
        children = [c for c in doc.children(pattern) if doc.tag(c) not in NON_RENDERING_TAGS]
        if children:
            return children
    return []


def _tile_size(doc: SvgDocument, chain: list[ET.Element], bounds: BoundingBox) -> tuple[float, float]:
    if _pattern_attr(doc, chain, "patternUnits") == "userSpaceOnUse":
        owner = next((p for p in chain if p.get("width") is not None), chain[0])
        width = doc.length(owner, "width", "x")
        owner = next((p for p in chain if p.get("height") is not None), chain[0])
        return width, doc.length(owner, "height", "y")
    width = _region_fraction(_pattern_attr(doc, chain, "width"), "0") * bounds.width
    height = _region_fraction(_pattern_attr(doc, chain, "height"), "0") * bounds.height
    return width, height


def analyze_pattern(doc: SvgDocument, pattern: ET.Element, bounds: BoundingBox) -> FilterExpansion:
    """How far a pattern's content reaches beyond its tile, as pixel growth.

    Content is laid out in tile space with its origin at the tile corner. The
    overhang on each side is mapped through the linear part of
    ``patternTransform`` so it stays in the painted element's user space.
    """
    chain = _pattern_chain(doc, pattern)
    width, height = _tile_size(doc, chain, bounds)
    if width <= 0 or height <= 0:
        return FilterExpansion()

    content = AffineTransform.identity()
    viewbox = parse_viewbox(_pattern_attr(doc, chain, "viewBox"))
    if viewbox is not None:
        content = aspect_ratio_transform(
            viewbox, 0.0, 0.0, width, height, _pattern_attr(doc, chain, "preserveAspectRatio")
        )
    elif _pattern_attr(doc, chain, "patternContentUnits") == "objectBoundingBox":
        content = AffineTransform.scale(bounds.width, bounds.height)

    boxes = []
    for child in _pattern_children(doc, chain):
        box = doc.intrinsic_bbox(child)
        if box is not None:
            boxes.append(content.multiply(local_transform(doc, child)).transform_bounds(box))
    reach = union_all(boxes)
    if reach is None:
        return FilterExpansion()

    overhang = BoundingBox.from_extents(
        min(0.0, reach.x), min(0.0, reach.y), max(0.0, reach.max_x - width), max(0.0, reach.max_y - height)
    )
    tile = parse_transform(_pattern_attr(doc, chain, "patternTransform"))
    linear = AffineTransform(tile.a, tile.b, tile.c, tile.d)
    overhang = linear.transform_bounds(overhang)
    left, top = max(0.0, -overhang.x), max(0.0, -overhang.y)
    right, bottom = max(0.0, overhang.max_x), max(0.0, overhang.max_y)
    expansion = FilterExpansion(left, top, left + right, top + bottom, is_pixel_based=True)
    if not expansion.is_zero:
        logger.debug("Pattern #%s overflows its tile by %s", pattern.get("id"), expansion)
    return expansion


def analyze_pattern_paint(doc: SvgDocument, el: ET.Element, bounds: BoundingBox | None) -> FilterExpansion:
    """Largest overflow of the patterns used as the element's fill or stroke."""
    if bounds is None:
        return FilterExpansion()
    left = top = right = bottom = 0.0
    for prop in ("fill", "stroke"):
        value = doc.get_computed_style_property(el, prop)
        if not value.startswith("url("):
            continue
        target = doc.resolve_href(value)
        if target is None or doc.tag(target) != "pattern":
            logger.debug("%s %s on %s is not a pattern", prop, value, doc.element_id(el))
            continue
        grow = analyze_pattern(doc, target, bounds)
        left, top = max(left, grow.x), max(top, grow.y)
        right, bottom = max(right, grow.width - grow.x), max(bottom, grow.height - grow.y)
    return FilterExpansion(left, top, left + right, top + bottom, is_pixel_based=True)


# ── Element effects ───────────────────────────────────────────────────────


def analyze_filter(doc: SvgDocument, el: ET.Element, config: AnalysisConfig | None = None) -> FilterExpansion | None:
    value = resolve_effect_value(doc, el, "filter")
    if value is None:
        return None
    if value.startswith("url("):
        target = doc.resolve_href(value)
        if target is None or doc.tag(target) != "filter":
            logger.debug("filter %s on %s does not resolve", value, doc.element_id(el))
            return FilterExpansion()
        return analyze_filter_definition(doc, target, config)
    return analyze_css_filters(value, config)


def analyze_effects(
    doc: SvgDocument,
    el: ET.Element,
    config: AnalysisConfig | None = None,
    bounds: BoundingBox | None = None,
) -> ElementEffects:
    """Filter, mask, clip and pattern-paint effects of one element.

    ``bounds`` is the element's intrinsic box, used to size bounding-box
    relative pattern tiles; it is computed when not given.
    """
    expansion = analyze_filter(doc, el, config)
    if bounds is None:
        bounds = doc.intrinsic_bbox(el)
    return ElementEffects(
        has_filter=expansion is not None,
        filter_expansion=expansion or FilterExpansion(),
        has_mask=resolve_effect_value(doc, el, "mask") is not None,
        has_clip_path=resolve_effect_value(doc, el, "clip-path") is not None,
        pattern_overflow=analyze_pattern_paint(doc, el, bounds),
    )


def apply_filter_expansion(bounds: BoundingBox, expansion: FilterExpansion) -> BoundingBox:
    """Grow ``bounds`` by pixels, or by fractions of its own size.

    Any coefficient of 1 or more is read as pixels even without the flag. An
    absolute region is unioned in.
    """
    if expansion.region is not None:
        return bounds.union(expansion.region)
    if expansion.is_zero:
        return bounds
    pixel = expansion.is_pixel_based or any(
        v >= 1 for v in (expansion.x, expansion.y, expansion.width, expansion.height)
    )
    if pixel:
        dx, dy, dw, dh = expansion.x, expansion.y, expansion.width, expansion.height
    else:
        dx = bounds.width * expansion.x
        dy = bounds.height * expansion.y
        dw = bounds.width * expansion.width
        dh = bounds.height * expansion.height
    return BoundingBox.from_extents(bounds.x - dx, bounds.y - dy, bounds.max_x - dx + dw, bounds.max_y - dy + dh)


def expand_for_effects(effects: ElementEffects, bounds: BoundingBox) -> BoundingBox:
    """Final effect-expanded box. Masks and clips never shrink it."""
    if effects.has_pattern_overflow:
        bounds = apply_filter_expansion(bounds, effects.pattern_overflow)
    if effects.has_filter:
        return apply_filter_expansion(bounds, effects.filter_expansion)
    return bounds
