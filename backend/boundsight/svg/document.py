"""SvgDocument — read-only adapter over a parsed SVG tree.

The bounds engine only talks to the document through this class: attribute and
style lookup, tree navigation, id lookup and intrinsic per-primitive geometry.
Namespace prefixes are stripped from tags at parse time; ``xlink:href`` stays
reachable as an ``href`` fallback.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from boundsight.engine.context import BoundingBox
from boundsight.engine.transforms import parse_viewbox
from boundsight.svg import css

if TYPE_CHECKING:
    from boundsight.engine.css_animation import CssKeyframe

logger = logging.getLogger(__name__)

XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

# Properties whose computed value falls back to the parent's
INHERITED_PROPERTIES = {
    "visibility",
    "fill",
    "stroke",
    "stroke-width",
    "font-size",
    "font-family",
    "text-anchor",
    "marker-start",
    "marker-mid",
    "marker-end",
}

_SIMPLE_SELECTOR_RE = re.compile(r"^([A-Za-z][\w-]*|\*)?((?:[#.][\w-]+)*)$")
_LENGTH_RE = re.compile(r"^\s*(-?\d*\.?\d+(?:[eE][-+]?\d+)?)\s*(px|%)?\s*$")


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


@dataclass(frozen=True)
class StyleRule:
    tag: str | None
    element_id: str | None
    classes: frozenset[str]
    declarations: dict
    specificity: int
    order: int

    def matches(self, tag: str, element_id: str | None, classes: set[str]) -> bool:
        if self.tag and self.tag != tag:
            return False
        if self.element_id and self.element_id != element_id:
            return False
        return self.classes <= classes


def _parse_selector(selector: str) -> tuple[str | None, str | None, frozenset[str]] | None:
    """Split a compound selector like ``rect#a.b``. Combinators are not supported."""
    match = _SIMPLE_SELECTOR_RE.match(selector.strip())
    if not match or not selector.strip():
        return None
    tag = match.group(1) if match.group(1) not in (None, "*") else None
    element_id = None
    classes = set()
    for part in re.findall(r"[#.][\w-]+", match.group(2) or ""):
        if part[0] == "#":
            element_id = part[1:]
        else:
            classes.add(part[1:])
    return tag, element_id, frozenset(classes)


def parse_style_rules(style_texts: Iterable[str]) -> list[StyleRule]:
    rules: list[StyleRule] = []
    order = 0
    for text in style_texts:
        for prelude, body in css.iter_blocks(css.strip_comments(text)):
            if prelude.startswith("@"):
                # @keyframes, @media, @font-face ... are not element rules
                continue
            declarations = css.parse_declarations(body)
            for selector in prelude.split(","):
                parsed = _parse_selector(selector)
                if parsed is None:
                    logger.debug("Skipping unsupported selector %r", selector.strip())
                    continue
                tag, element_id, classes = parsed
                specificity = (100 if element_id else 0) + 10 * len(classes) + (1 if tag else 0)
                rules.append(StyleRule(tag, element_id, classes, declarations, specificity, order))
                order += 1
    return rules


class SvgDocument:
    """Immutable snapshot of one SVG document."""

    def __init__(self, root: ET.Element, source: str = "") -> None:
        self.root = root
        self.source = source
        self._parents: dict[ET.Element, ET.Element] = {}
        self._ids: dict[str, ET.Element] = {}
        self._order: dict[ET.Element, int] = {}

        for index, el in enumerate(root.iter()):
            el.tag = _strip_ns(el.tag) if isinstance(el.tag, str) else el.tag
            self._order[el] = index
            for child in el:
                self._parents[child] = el
            el_id = el.get("id")
            if el_id and el_id not in self._ids:
                self._ids[el_id] = el

        self._rules = parse_style_rules(self.style_texts())

    # ── Attributes and style ─────────────────────────────────────────────

    def tag(self, el: ET.Element) -> str:
        return el.tag if isinstance(el.tag, str) else ""

    def get_attribute(self, el: ET.Element, name: str) -> str | None:
        return el.get(name)

    def href(self, el: ET.Element) -> str | None:
        return el.get("href") or el.get(XLINK_HREF) or el.get("xlink:href")

    def element_id(self, el: ET.Element) -> str:
        """Stable label: the ``id`` attribute, else tag plus document index."""
        return el.get("id") or f"{self.tag(el)}[{self._order.get(el, -1)}]"

    def inline_style(self, el: ET.Element) -> dict[str, str]:
        return css.parse_declarations(el.get("style"))

    def get_style_property(self, el: ET.Element, name: str) -> str | None:
        return self.inline_style(el).get(name)

    def declared_style_property(self, el: ET.Element, name: str) -> str | None:
        """The element's own value for ``name``, ignoring inheritance."""
        value = self.get_style_property(el, name)
        if value is None:
            value = self._rule_value(el, name)
        if value is None:
            value = el.get(name)
        return value

    def get_computed_style_property(self, el: ET.Element, name: str) -> str:
        """Inline style, then stylesheet rules, then presentation attribute.

        Inherited properties fall back to the parent; everything else resolves
        to an empty string when unset.
        """
        value = self.declared_style_property(el, name)
        if value is None or value.strip() == "inherit":
            if name in INHERITED_PROPERTIES or (value or "").strip() == "inherit":
                parent = self.parent(el)
                if parent is not None:
                    return self.get_computed_style_property(parent, name)
            return ""
        return value.strip()

    def _rule_value(self, el: ET.Element, name: str) -> str | None:
        if not self._rules:
            return None
        tag = self.tag(el)
        el_id = el.get("id")
        classes = set((el.get("class") or "").split())
        best = None
        for rule in self._rules:
            if name in rule.declarations and rule.matches(tag, el_id, classes):
                if best is None or (rule.specificity, rule.order) >= (best.specificity, best.order):
                    best = rule
        return best.declarations[name] if best else None

    def length(self, el: ET.Element, name: str, axis: str = "x", default: float = 0.0) -> float:
        """Numeric length attribute. Percentages resolve against the root viewBox."""
        raw = el.get(name)
        if raw is None:
            return default
        match = _LENGTH_RE.match(raw)
        if not match:
            return default
        value = float(match.group(1))
        if match.group(2) == "%":
            vb = self.viewbox
            if vb is None:
                return default
            ref = vb.width if axis == "x" else vb.height
            return ref * value / 100
        return value

    # ── Navigation ───────────────────────────────────────────────────────

    def parent(self, el: ET.Element) -> ET.Element | None:
        return self._parents.get(el)

    def children(self, el: ET.Element) -> list[ET.Element]:
        return [c for c in el if isinstance(c.tag, str)]

    def ancestors(self, el: ET.Element) -> Iterator[ET.Element]:
        """Nearest first, root last."""
        node = self.parent(el)
        while node is not None:
            yield node
            node = self.parent(node)

    def query_by_id(self, element_id: str) -> ET.Element | None:
        return self._ids.get(element_id)

    def resolve_href(self, value: str | None) -> ET.Element | None:
        """Resolve ``#id`` or ``url(#id)`` to an element."""
        if not value:
            return None
        value = value.strip()
        match = re.match(r"^url\(\s*['\"]?#([^'\")]+)['\"]?\s*\)", value)
        if match:
            return self.query_by_id(match.group(1))
        if value.startswith("#"):
            return self.query_by_id(value[1:])
        return None

    def query_all(self, tags: Iterable[str]) -> list[ET.Element]:
        wanted = set(tags)
        return [el for el in self.root.iter() if el.tag in wanted]

    def iter_elements(self) -> Iterator[ET.Element]:
        return (el for el in self.root.iter() if isinstance(el.tag, str))

    def order(self, el: ET.Element) -> int:
        return self._order.get(el, -1)

    # ── Document-level data ──────────────────────────────────────────────

    def style_texts(self) -> list[str]:
        return ["".join(el.itertext()) for el in self.root.iter("style")]

    @cached_property
    def viewbox(self) -> BoundingBox | None:
        return parse_viewbox(self.root.get("viewBox"))

    @cached_property
    def keyframes(self) -> dict[str, list[CssKeyframe]]:
        from boundsight.engine.css_animation import parse_keyframes

        return parse_keyframes("\n".join(self.style_texts()))

    # ── Geometry ─────────────────────────────────────────────────────────

    def intrinsic_bbox(self, el: ET.Element) -> BoundingBox | None:
        """Untransformed geometry of one element in its own user space."""
        from boundsight.svg.geometry import intrinsic_bbox

        return intrinsic_bbox(self, el)
