"""Intrinsic element geometry — per-primitive boxes, use/symbol resolution, markers.

All boxes are in the element's own user space, before its ``transform``
attribute. Reference chains (``use`` → ``symbol`` → ``use`` ...) carry an owned
frozenset of visited ids down each branch; revisiting an id contributes nothing.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.context import BoundingBox, union_all
from boundsight.engine.path_geometry import path_bounds, path_segments, path_vertices, points_attribute
from boundsight.engine.transforms import (
    AffineTransform,
    aspect_ratio_transform,
    parse_transform,
    parse_viewbox,
)
from boundsight.utils.geometry import parse_number_list, to_float

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

# Children that never render geometry of their own
NON_RENDERING_TAGS = {
    "defs", "symbol", "clipPath", "mask", "marker", "pattern", "linearGradient",
    "radialGradient", "filter", "style", "script", "title", "desc", "metadata",
    "animate", "animateTransform", "animateMotion", "set", "mpath",
}

MARKER_TAGS = {"path", "line", "polyline", "polygon"}

# Average glyph advance as a fraction of font-size
_GLYPH_ADVANCE = 0.6
_DESCENT = 0.25
_DEFAULT_FONT_SIZE = 16.0


def local_transform(doc: SvgDocument, el: ET.Element) -> AffineTransform:
    """The element's own transform, plus the viewport mapping of a nested <svg>."""
    matrix = parse_transform(doc.get_attribute(el, "transform"))
    if doc.tag(el) == "svg" and el is not doc.root:
        matrix = matrix.multiply(nested_viewport_transform(doc, el))
    return matrix


def nested_viewport_transform(doc: SvgDocument, el: ET.Element) -> AffineTransform:
    x = doc.length(el, "x", "x")
    y = doc.length(el, "y", "y")
    vb = parse_viewbox(doc.get_attribute(el, "viewBox"))
    if vb is None:
        return AffineTransform.translate(x, y)
    width = doc.length(el, "width", "x", vb.width)
    height = doc.length(el, "height", "y", vb.height)
    return aspect_ratio_transform(vb, x, y, width, height, doc.get_attribute(el, "preserveAspectRatio"))


def intrinsic_bbox(
    doc: SvgDocument, el: ET.Element, visited: frozenset[str] = frozenset()
) -> BoundingBox | None:
    tag = doc.tag(el)

    if tag in ("rect", "image", "foreignObject"):
        width = max(0.0, doc.length(el, "width", "x"))
        height = max(0.0, doc.length(el, "height", "y"))
        box = BoundingBox(doc.length(el, "x", "x"), doc.length(el, "y", "y"), width, height)
    elif tag == "circle":
        r = max(0.0, doc.length(el, "r"))
        cx, cy = doc.length(el, "cx", "x"), doc.length(el, "cy", "y")
        box = BoundingBox(cx - r, cy - r, 2 * r, 2 * r)
    elif tag == "ellipse":
        rx = max(0.0, doc.length(el, "rx", "x"))
        ry = max(0.0, doc.length(el, "ry", "y"))
        cx, cy = doc.length(el, "cx", "x"), doc.length(el, "cy", "y")
        box = BoundingBox(cx - rx, cy - ry, 2 * rx, 2 * ry)
    elif tag == "line":
        x1, y1 = doc.length(el, "x1", "x"), doc.length(el, "y1", "y")
        x2, y2 = doc.length(el, "x2", "x"), doc.length(el, "y2", "y")
        box = BoundingBox(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))
    elif tag in ("polyline", "polygon"):
        box = BoundingBox.from_points(points_attribute(doc.get_attribute(el, "points")))
    elif tag == "path":
        d = doc.get_attribute(el, "d")
        box = path_bounds(d).to_box() if path_segments(d) else None
    elif tag == "text":
        box = text_bbox(doc, el)
    elif tag == "use":
        box = use_bbox(doc, el, visited)
    elif tag in ("g", "svg", "switch", "a", "symbol"):
        box = children_bbox(doc, el, visited)
    else:
        return None

    if box is not None and tag in MARKER_TAGS:
        box = union_all([box, *marker_boxes(doc, el)])
    return box


def children_bbox(doc: SvgDocument, el: ET.Element, visited: frozenset[str] = frozenset()) -> BoundingBox | None:
    """Union of rendered children, each mapped through its own transform."""
    children = doc.children(el)
    if doc.tag(el) == "switch":
        from boundsight.svg.structure import switch_choice

        chosen = switch_choice(doc, el)
        children = [chosen] if chosen is not None else []

    boxes = []
    for child in children:
        if doc.tag(child) in NON_RENDERING_TAGS:
            continue
        box = intrinsic_bbox(doc, child, visited)
        if box is not None:
            boxes.append(local_transform(doc, child).transform_bounds(box))
    return union_all(boxes)


def use_bbox(doc: SvgDocument, use: ET.Element, visited: frozenset[str] = frozenset()) -> BoundingBox | None:
    """Box of referenced content in the use element's space (x/y applied, transform not)."""
    href = doc.href(use) or ""
    if not href.startswith("#"):
        return None
    ref_id = href[1:]
    if ref_id in visited:
        logger.warning("Reference cycle through #%s, skipping", ref_id)
        return None
    target = doc.query_by_id(ref_id)
    if target is None:
        logger.debug("use target #%s not found", ref_id)
        return None
    branch = visited | {ref_id}

    x = doc.length(use, "x", "x")
    y = doc.length(use, "y", "y")
    target_tag = doc.tag(target)

    if target_tag in ("symbol", "svg"):
        content = children_bbox(doc, target, branch)
        if content is None:
            return None
        vb = parse_viewbox(doc.get_attribute(target, "viewBox"))
        if vb is not None:
            width = doc.length(use, "width", "x", doc.length(target, "width", "x", vb.width))
            height = doc.length(use, "height", "y", doc.length(target, "height", "y", vb.height))
            viewport = aspect_ratio_transform(
                vb, 0.0, 0.0, width, height, doc.get_attribute(target, "preserveAspectRatio")
            )
            content = viewport.transform_bounds(content)
    else:
        content = intrinsic_bbox(doc, target, branch)
        if content is None:
            return None
        content = parse_transform(doc.get_attribute(target, "transform")).transform_bounds(content)

    return content.translate(x, y)


def text_bbox(doc: SvgDocument, el: ET.Element) -> BoundingBox | None:
    """Em-box estimate: glyph advance 0.6·font-size, baseline at y."""
    content = "".join(el.itertext()).strip()
    if not content:
        return None
    font_size = to_float(doc.get_computed_style_property(el, "font-size").replace("px", ""), _DEFAULT_FONT_SIZE)
    xs = parse_number_list(doc.get_attribute(el, "x"))
    ys = parse_number_list(doc.get_attribute(el, "y"))
    x = xs[0] if xs else 0.0
    y = ys[0] if ys else 0.0
    width = _GLYPH_ADVANCE * font_size * len(content)

    anchor = doc.get_computed_style_property(el, "text-anchor")
    if anchor == "middle":
        x -= width / 2
    elif anchor == "end":
        x -= width
    return BoundingBox(x, y - font_size, width, font_size * (1 + _DESCENT))


def element_vertices(doc: SvgDocument, el: ET.Element) -> list[tuple[float, float]]:
    tag = doc.tag(el)
    if tag == "path":
        return path_vertices(doc.get_attribute(el, "d"))
    if tag == "line":
        return [
            (doc.length(el, "x1", "x"), doc.length(el, "y1", "y")),
            (doc.length(el, "x2", "x"), doc.length(el, "y2", "y")),
        ]
    points = points_attribute(doc.get_attribute(el, "points"))
    if tag == "polygon" and points:
        points = points + [points[0]]
    return points


def marker_boxes(doc: SvgDocument, el: ET.Element, default_size: float = 3.0) -> list[BoundingBox]:
    """One box per vertex carrying a marker: (p - ref·scale, markerSize·scale)."""
    vertices = element_vertices(doc, el)
    if not vertices:
        return []

    placements = {
        "marker-start": vertices[:1],
        "marker-mid": vertices[1:-1],
        "marker-end": vertices[-1:],
    }
    boxes = []
    for prop, points in placements.items():
        marker = doc.resolve_href(doc.get_computed_style_property(el, prop))
        if marker is None or doc.tag(marker) != "marker":
            continue
        width = doc.length(marker, "markerWidth", "x", default_size)
        height = doc.length(marker, "markerHeight", "y", default_size)
        ref_x = to_float(doc.get_attribute(marker, "refX"))
        ref_y = to_float(doc.get_attribute(marker, "refY"))
        scale = 1.0
        if doc.get_attribute(marker, "markerUnits") != "userSpaceOnUse":
            scale = to_float(doc.get_computed_style_property(el, "stroke-width").replace("px", ""), 1.0)
        for px, py in points:
            boxes.append(BoundingBox(px - ref_x * scale, py - ref_y * scale, width * scale, height * scale))
    return boxes
