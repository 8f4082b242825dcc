"""Tests for document structure: rendering, switch, visibility and transforms."""

import pytest

from boundsight.engine.context import BoundingBox
from boundsight.svg.parser import parse_svg
from boundsight.svg.structure import (
    ancestor_transform,
    find_animation_elements,
    is_hidden,
    iter_content_elements,
    passes_conditionals,
    switch_choice,
)
from tests.conftest import SWITCH_SVG


def _doc(body: str):
    return parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'viewBox="0 0 200 200">{body}</svg>'
    )


def _hidden(body: str, el_id: str = "t") -> bool:
    doc = _doc(body)
    return is_hidden(doc, doc.query_by_id(el_id))


# ---------------------------------------------------------------------------
# Content discovery
# ---------------------------------------------------------------------------

def test_definitions_do_not_render():
    doc = _doc(
        '<defs><rect id="in-defs" width="5" height="5"/></defs>'
        '<symbol id="sym"><circle id="in-symbol" r="3"/></symbol>'
        '<rect id="visible" width="5" height="5"/>'
    )
    ids = [el.get("id") for el in iter_content_elements(doc)]
    assert ids == ["visible"]


def test_plain_groups_are_not_content_but_animated_groups_are():
    doc = _doc(
        '<g id="plain"><rect id="r1" width="1" height="1"/></g>'
        '<g id="moving"><animateTransform attributeName="transform" type="rotate" values="0;90"/>'
        '<rect id="r2" width="1" height="1"/></g>'
        '<g id="blurred" filter="url(#f)"><rect id="r3" width="1" height="1"/></g>'
    )
    ids = [el.get("id") for el in iter_content_elements(doc)]
    assert "plain" not in ids
    assert "moving" in ids
    assert "blurred" in ids


# ---------------------------------------------------------------------------
# <switch>
# ---------------------------------------------------------------------------

def test_switch_picks_first_passing_child():
    doc = parse_svg(SWITCH_SVG)
    ids = [el.get("id") for el in iter_content_elements(doc)]
    assert ids == ["fallback"]


def test_switch_choice_with_language():
    doc = parse_svg(SWITCH_SVG)
    switch = next(el for el in doc.iter_elements() if doc.tag(el) == "switch")
    assert switch_choice(doc, switch, "fr").get("id") == "french"
    assert switch_choice(doc, switch, "en").get("id") == "fallback"


@pytest.mark.parametrize("attrs,language,expected", [
    ('systemLanguage="en"', "en", True),
    ('systemLanguage="en-US"', "en", True),
    ('systemLanguage="en"', "en-GB", True),
    ('systemLanguage="de, fr"', "en", False),
    ('requiredFeatures="http://www.w3.org/TR/SVG11/feature#Shape"', "en", True),
    ('requiredFeatures="http://example.com/feature#Teleport"', "en", False),
    ('requiredExtensions="http://example.com/ext"', "en", False),
    ("", "en", True),
])
def test_passes_conditionals(attrs, language, expected):
    doc = _doc(f'<rect id="t" {attrs}/>')
    assert passes_conditionals(doc, doc.query_by_id("t"), language) is expected


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------

def test_display_none_hides_subtree():
    assert _hidden('<g display="none"><rect id="t" width="1" height="1"/></g>')


def test_display_none_revealed_by_animation():
    assert not _hidden(
        '<rect id="t" width="1" height="1" display="none">'
        '<animate attributeName="display" values="none;inline" dur="1s"/></rect>'
    )


def test_set_display_none_at_start_hides():
    assert _hidden('<rect id="t" width="1" height="1"><set attributeName="display" to="none" begin="0s"/></rect>')


def test_set_display_none_with_finite_duration_reverts():
    assert not _hidden(
        '<rect id="t" width="1" height="1"><set attributeName="display" to="none" begin="0s" dur="1s"/></rect>'
    )
    assert not _hidden(
        '<rect id="t" width="1" height="1"><set attributeName="display" to="none" begin="0s" end="2s"/></rect>'
    )


def test_frozen_or_repeating_set_still_hides():
    assert _hidden(
        '<rect id="t" width="1" height="1">'
        '<set attributeName="display" to="none" begin="0s" dur="1s" fill="freeze"/></rect>'
    )
    assert _hidden(
        '<rect id="t" width="1" height="1">'
        '<set attributeName="display" to="none" begin="0s" dur="1s" repeatCount="indefinite"/></rect>'
    )


def test_set_display_none_later_does_not_hide():
    assert not _hidden(
        '<rect id="t" width="1" height="1"><set attributeName="display" to="none" begin="2s"/></rect>'
    )


def test_zero_opacity_hides_unless_animated():
    assert _hidden('<rect id="t" width="1" height="1" opacity="0"/>')
    assert not _hidden(
        '<rect id="t" width="1" height="1" style="opacity: 0">'
        '<animate attributeName="opacity" from="0" to="1" dur="1s" begin="click"/></rect>'
    )


def test_visibility_inherits_and_can_be_overridden():
    assert _hidden('<g visibility="hidden"><rect id="t" width="1" height="1"/></g>')
    assert not _hidden('<g visibility="hidden"><rect id="t" width="1" height="1" visibility="visible"/></g>')


def test_visibility_revealed_by_set():
    assert not _hidden(
        '<g visibility="hidden"><rect id="t" width="1" height="1">'
        '<set attributeName="visibility" to="visible" begin="click"/></rect></g>'
    )


# ---------------------------------------------------------------------------
# Animation discovery
# ---------------------------------------------------------------------------

def test_find_animation_elements_children_and_href_targets():
    doc = _doc(
        '<rect id="t" width="1" height="1"><animate id="own" attributeName="x" to="5"/></rect>'
        '<animate id="remote" xlink:href="#t" attributeName="y" to="5"/>'
        '<set id="other" href="#someone-else" attributeName="x" to="1"/>'
    )
    found = [a.get("id") for a in find_animation_elements(doc, doc.query_by_id("t"))]
    assert found == ["own", "remote"]


# ---------------------------------------------------------------------------
# Ancestor transforms
# ---------------------------------------------------------------------------

def test_ancestor_transform_chain():
    doc = _doc(
        '<g transform="translate(10,0)"><g transform="scale(2)">'
        '<rect id="t" width="5" height="5"/></g></g>'
    )
    m = ancestor_transform(doc, doc.query_by_id("t"))
    assert m.transform_bounds(BoundingBox(0, 0, 5, 5)) == BoundingBox(10, 0, 10, 10)


def test_nested_svg_viewport():
    doc = _doc(
        '<svg x="10" y="10" width="100" height="100" viewBox="0 0 50 50">'
        '<rect id="t" width="50" height="50"/></svg>'
    )
    m = ancestor_transform(doc, doc.query_by_id("t"))
    assert m.transform_bounds(BoundingBox(0, 0, 50, 50)).as_tuple() == pytest.approx((10, 10, 100, 100))
