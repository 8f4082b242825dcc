"""Tests for the SvgDocument adapter: style resolution, lookup and lengths."""

from boundsight.engine.context import BoundingBox
from boundsight.svg.document import parse_style_rules
from boundsight.svg.parser import parse_svg
from tests.conftest import CSS_ANIM_SVG


STYLED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100">
  <style>
    .a { fill: red; stroke: green }
    #b { fill: blue }
    rect.a { stroke-width: 3 }
  </style>
  <g id="group" stroke="black" filter="url(#f)">
    <rect id="b" class="a" width="10" height="10" fill="yellow"/>
    <rect id="c" class="a other" width="10" height="10" style="fill: purple"/>
    <rect id="d" width="50%" height="25%"/>
    <rect width="1" height="1"/>
  </g>
</svg>'''


def test_namespace_stripped():
    doc = parse_svg(STYLED_SVG)
    assert doc.tag(doc.root) == "svg"
    assert doc.query_by_id("b").tag == "rect"


def test_id_rule_beats_class_rule():
    doc = parse_svg(STYLED_SVG)
    assert doc.get_computed_style_property(doc.query_by_id("b"), "fill") == "blue"


def test_rule_beats_presentation_attribute():
    doc = parse_svg(STYLED_SVG)
    # The class rule's stroke wins over the inherited group attribute
    assert doc.get_computed_style_property(doc.query_by_id("b"), "stroke") == "green"


def test_inline_style_beats_rules():
    doc = parse_svg(STYLED_SVG)
    assert doc.get_computed_style_property(doc.query_by_id("c"), "fill") == "purple"


def test_compound_selector():
    doc = parse_svg(STYLED_SVG)
    assert doc.get_computed_style_property(doc.query_by_id("c"), "stroke-width") == "3"


def test_inherited_and_non_inherited_properties():
    doc = parse_svg(STYLED_SVG)
    d = doc.query_by_id("d")
    assert doc.get_computed_style_property(d, "stroke") == "black"
    assert doc.get_computed_style_property(d, "filter") == ""


def test_percentage_lengths_use_root_viewbox():
    doc = parse_svg(STYLED_SVG)
    d = doc.query_by_id("d")
    assert doc.length(d, "width", "x") == 100
    assert doc.length(d, "height", "y") == 25
    assert doc.intrinsic_bbox(d) == BoundingBox(0, 0, 100, 25)


def test_element_id_fallback():
    doc = parse_svg(STYLED_SVG)
    unnamed = [el for el in doc.iter_elements() if doc.tag(el) == "rect" and el.get("id") is None][0]
    assert doc.element_id(unnamed).startswith("rect[")


def test_navigation():
    doc = parse_svg(STYLED_SVG)
    b = doc.query_by_id("b")
    group = doc.query_by_id("group")
    assert doc.parent(b) is group
    assert list(doc.ancestors(b)) == [group, doc.root]
    assert len(doc.children(group)) == 4


def test_resolve_href_forms():
    doc = parse_svg(STYLED_SVG)
    b = doc.query_by_id("b")
    assert doc.resolve_href("#b") is b
    assert doc.resolve_href("url(#b)") is b
    assert doc.resolve_href("url('#b')") is b
    assert doc.resolve_href("url(#nope)") is None
    assert doc.resolve_href("b") is None


def test_keyframes_collected_from_style():
    doc = parse_svg(CSS_ANIM_SVG)
    assert set(doc.keyframes) == {"slide"}


def test_viewbox():
    assert parse_svg(STYLED_SVG).viewbox == BoundingBox(0, 0, 200, 100)


def test_parse_style_rules_skips_at_rules_and_combinators():
    rules = parse_style_rules(["@font-face { src: x } g rect { fill: red } .ok { fill: blue }"])
    assert [r.classes for r in rules] == [frozenset({"ok"})]
