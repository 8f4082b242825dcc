"""Document structure — which elements render, where they sit, and whether they show.

- Definition subtrees (defs, symbol, clipPath, ...) never render directly.
- A <switch> renders only its first child that passes the conditional tests.
- An element is hidden only when a hiding value is active from time zero and no
  animation on it (or on the hiding ancestor) can change that value back.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import TYPE_CHECKING

from boundsight.engine.timing import is_event_or_syncbase, parse_clock_value, parse_timing, split_values
from boundsight.engine.transforms import AffineTransform, parse_transform
from boundsight.svg.geometry import local_transform

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

DEFINITION_TAGS = {
    "defs", "symbol", "clipPath", "mask", "marker", "pattern",
    "linearGradient", "radialGradient", "filter",
}
VISUAL_TAGS = {
    "rect", "circle", "ellipse", "line", "polyline", "polygon",
    "path", "text", "image", "foreignObject", "use",
}
CONTAINER_TAGS = {"g", "svg", "switch", "a"}
ANIMATION_TAGS = ("animate", "animateTransform", "animateMotion", "set")

# Feature strings a current SVG user agent claims
SUPPORTED_FEATURES = {
    "http://www.w3.org/TR/SVG11/feature#SVG",
    "http://www.w3.org/TR/SVG11/feature#SVGDOM",
    "http://www.w3.org/TR/SVG11/feature#SVG-static",
    "http://www.w3.org/TR/SVG11/feature#SVG-animation",
    "http://www.w3.org/TR/SVG11/feature#SVG-dynamic",
    "http://www.w3.org/TR/SVG11/feature#SVGDOM-animation",
    "http://www.w3.org/TR/SVG11/feature#SVGDOM-dynamic",
    "http://www.w3.org/TR/SVG11/feature#BasicStructure",
    "http://www.w3.org/TR/SVG11/feature#Shape",
    "http://www.w3.org/TR/SVG11/feature#Path",
    "http://www.w3.org/TR/SVG11/feature#BasicText",
    "http://www.w3.org/TR/SVG11/feature#PaintAttribute",
    "http://www.w3.org/TR/SVG11/feature#BasicPaintAttribute",
    "http://www.w3.org/TR/SVG11/feature#OpacityAttribute",
    "http://www.w3.org/TR/SVG11/feature#Gradient",
    "http://www.w3.org/TR/SVG11/feature#Pattern",
    "http://www.w3.org/TR/SVG11/feature#Clip",
    "http://www.w3.org/TR/SVG11/feature#Mask",
    "http://www.w3.org/TR/SVG11/feature#Filter",
    "http://www.w3.org/TR/SVG11/feature#BasicFilter",
    "http://www.w3.org/TR/SVG11/feature#Image",
    "http://www.w3.org/TR/SVG11/feature#Extensibility",
    "http://www.w3.org/TR/SVG11/feature#GraphicsAttribute",
    "http://www.w3.org/TR/SVG11/feature#XlinkAttribute",
    "http://www.w3.org/TR/SVG11/feature#ExternalResourcesRequired",
    "http://www.w3.org/TR/SVG11/feature#Style",
    "http://www.w3.org/TR/SVG11/feature#ViewportAttribute",
    "org.w3c.svg.static",
    "org.w3c.svg.animation",
    "org.w3c.svg.dynamic",
    "org.w3c.dom.svg",
    "org.w3c.dom.svg.static",
}

# Values that keep an element off screen
_HIDING_VALUES = {
    "display": {"none"},
    "visibility": {"hidden", "collapse"},
}


def is_inside_definition(doc: SvgDocument, el: ET.Element) -> bool:
    return any(doc.tag(anc) in DEFINITION_TAGS for anc in doc.ancestors(el))


# ── <switch> ──────────────────────────────────────────────────────────────


def passes_conditionals(doc: SvgDocument, el: ET.Element, language: str = "en") -> bool:
    features = doc.get_attribute(el, "requiredFeatures")
    if features is not None:
        required = [f for f in re.split(r"[\s,]+", features) if f]
        if not all(f in SUPPORTED_FEATURES for f in required):
            return False

    # Extensions are never available to a static analysis
    if (doc.get_attribute(el, "requiredExtensions") or "").strip():
        return False

    system_language = doc.get_attribute(el, "systemLanguage")
    if system_language is not None:
        wanted = language.lower()
        short = wanted.split("-")[0]
        langs = [lang.strip().lower() for lang in system_language.split(",") if lang.strip()]
        if not any(
            lang in (wanted, short) or wanted.startswith(lang + "-") or lang.startswith(wanted + "-")
            for lang in langs
        ):
            return False
    return True


def switch_choice(doc: SvgDocument, switch: ET.Element, language: str = "en") -> ET.Element | None:
    """First child of a <switch> that would render, or None."""
    for child in doc.children(switch):
        if doc.tag(child) in ANIMATION_TAGS:
            continue
        if passes_conditionals(doc, child, language):
            return child
        logger.debug("switch skipped <%s>", doc.tag(child))
    return None


def is_switch_excluded(doc: SvgDocument, el: ET.Element, language: str = "en") -> bool:
    """True when some <switch> ancestor selected a different branch."""
    node = el
    for anc in doc.ancestors(el):
        if doc.tag(anc) == "switch" and switch_choice(doc, anc, language) is not node:
            return True
        node = anc
    return False


# ── Transforms ────────────────────────────────────────────────────────────


def ancestor_transform(doc: SvgDocument, el: ET.Element) -> AffineTransform:
    """Cumulative matrix of every ancestor, root first: parent_cumulative * local."""
    matrix = AffineTransform.identity()
    for anc in reversed(list(doc.ancestors(el))):
        if anc is doc.root:
            matrix = matrix.multiply(parse_transform(doc.get_attribute(anc, "transform")))
        else:
            matrix = matrix.multiply(local_transform(doc, anc))
    return matrix


# ── Animation discovery ───────────────────────────────────────────────────


def find_animation_elements(doc: SvgDocument, el: ET.Element) -> list[ET.Element]:
    """Child animation elements plus animations elsewhere targeting ``#id``."""
    found = [child for child in doc.children(el) if doc.tag(child) in ANIMATION_TAGS]
    el_id = doc.get_attribute(el, "id")
    if el_id:
        for anim in doc.query_all(ANIMATION_TAGS):
            if doc.parent(anim) is el:
                continue
            if doc.href(anim) == f"#{el_id}":
                found.append(anim)
    return found


# ── Visibility ────────────────────────────────────────────────────────────


def _is_hiding(prop: str, value: str | None) -> bool:
    if value is None:
        return False
    value = value.strip()
    if prop == "opacity":
        try:
            return float(value) <= 0
        except ValueError:
            return False
    return value in _HIDING_VALUES[prop]


def _animations_for(doc: SvgDocument, el: ET.Element, prop: str) -> list[ET.Element]:
    return [
        anim
        for anim in find_animation_elements(doc, el)
        if doc.tag(anim) in ("animate", "set") and doc.get_attribute(anim, "attributeName") == prop
    ]


def _can_reveal(doc: SvgDocument, anims: list[ET.Element], prop: str) -> bool:
    for anim in anims:
        candidates = split_values(doc.get_attribute(anim, "values"))
        candidates += [v for v in (doc.get_attribute(anim, a) for a in ("from", "to", "by")) if v]
        if any(not _is_hiding(prop, v) for v in candidates):
            return True
    return False


def _holds_forever(doc: SvgDocument, anim: ET.Element) -> bool:
    """A frozen ``set``, or one whose active duration never ends."""
    if (doc.get_attribute(anim, "fill") or "").strip() == "freeze":
        return True
    if (doc.get_attribute(anim, "end") or "indefinite").strip() != "indefinite":
        return False
    if (doc.get_attribute(anim, "repeatDur") or "").strip() == "indefinite":
        return True
    timing = parse_timing(lambda name: doc.get_attribute(anim, name))
    return math.isinf(timing.duration * timing.repeat_count)


def _hidden_from_start(doc: SvgDocument, anims: list[ET.Element], prop: str) -> bool:
    """A ``set`` to a hiding value that begins at time zero and never reverts."""
    for anim in anims:
        if doc.tag(anim) != "set" or not _is_hiding(prop, doc.get_attribute(anim, "to")):
            continue
        begin = (doc.get_attribute(anim, "begin") or "0s").strip()
        if is_event_or_syncbase(begin) or parse_clock_value(begin, -1.0) != 0:
            continue
        if _holds_forever(doc, anim):
            return True
    return False


def _node_hides(doc: SvgDocument, node: ET.Element, prop: str, value: str | None) -> bool:
    anims = _animations_for(doc, node, prop)
    hidden = _is_hiding(prop, value) or _hidden_from_start(doc, anims, prop)
    return hidden and not _can_reveal(doc, anims, prop)


def is_hidden(doc: SvgDocument, el: ET.Element) -> bool:
    """True when the element can never be seen at any point in time."""
    chain = [el, *doc.ancestors(el)]
    for node in chain:
        for prop in ("display", "opacity"):
            if _node_hides(doc, node, prop, doc.declared_style_property(node, prop)):
                logger.debug("%s hidden by %s on %s", doc.element_id(el), prop, doc.element_id(node))
                return True

    # visibility inherits and can be overridden by a descendant
    for node in chain:
        declared = doc.declared_style_property(node, "visibility")
        anims = _animations_for(doc, node, "visibility")
        if _can_reveal(doc, anims, "visibility"):
            return False
        if declared is not None or _hidden_from_start(doc, anims, "visibility"):
            return _node_hides(doc, node, "visibility", declared)
    return False


# ── Content discovery ─────────────────────────────────────────────────────


def iter_content_elements(doc: SvgDocument, language: str = "en") -> Iterator[ET.Element]:
    """Visual elements plus containers that carry their own animations or effects."""
    for el in doc.iter_elements():
        tag = doc.tag(el)
        if tag in VISUAL_TAGS:
            pass
        elif tag == "g" and (find_animation_elements(doc, el) or _has_group_effects(doc, el)):
            pass
        else:
            continue
        if is_inside_definition(doc, el) or is_switch_excluded(doc, el, language):
            continue
        yield el


def _has_group_effects(doc: SvgDocument, el: ET.Element) -> bool:
    if doc.get_computed_style_property(el, "animation-name") not in ("", "none"):
        return True
    if doc.get_computed_style_property(el, "animation") not in ("", "none"):
        return True
    return any(
        doc.declared_style_property(el, prop) not in (None, "", "none")
        for prop in ("filter", "mask", "clip-path")
    )
