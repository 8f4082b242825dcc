"""Tests for per-element analysis and the document bounds pipeline."""

import pytest

from boundsight.engine import pipeline as pipeline_module
from boundsight.engine.analyzer import analyze_element, static_stroke_width
from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import BoundingBox
from boundsight.engine.pipeline import BoundsPipeline, create_pipeline, format_viewbox, optimize_viewbox
from boundsight.svg.parser import parse_svg
from tests.conftest import (
    ANIMATED_RECT_SVG,
    CIRCLE_BY_SVG,
    CSS_ANIM_SVG,
    EMPTY_SVG,
    FILTER_SVG,
    HIDDEN_SET_SVG,
    MOTION_SVG,
    REVEALED_SVG,
    SWITCH_SVG,
    TRANSFORM_SVG,
    USE_SYMBOL_SVG,
)


def _svg(body: str) -> str:
    return f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">{body}</svg>'


# ---------------------------------------------------------------------------
# analyze_element
# ---------------------------------------------------------------------------

def test_analyze_element_layers(transform_doc):
    el = transform_doc.query_by_id("slider")
    result = analyze_element(transform_doc, el)
    assert result.element_id == "slider"
    assert result.tag == "rect"
    assert result.base_bounds == BoundingBox(0, 0, 20, 20)
    assert result.transformed_bounds == BoundingBox(100, 0, 20, 20)
    assert result.animated_bounds == BoundingBox(100, 0, 120, 70)
    assert result.effect_expanded_bounds == result.animated_bounds
    assert result.has_animations
    assert result.animation_count == 1
    assert not result.has_effects


def test_analyze_element_filter(filter_doc):
    result = analyze_element(filter_doc, filter_doc.query_by_id("blurred"))
    assert result.has_effects
    assert result.effect_expanded_bounds.as_tuple() == pytest.approx((44, 44, 52, 52))


def test_analyze_element_without_geometry():
    doc = parse_svg(_svg('<path id="p" d=""/>'))
    assert analyze_element(doc, doc.query_by_id("p")) is None


def test_static_stroke_width():
    doc = parse_svg(_svg(
        '<g stroke="black"><rect id="a" width="1" height="1"/>'
        '<rect id="b" width="1" height="1" stroke-width="4px"/></g>'
        '<rect id="c" width="1" height="1"/>'
    ))
    assert static_stroke_width(doc, doc.query_by_id("a")) == 1.0
    assert static_stroke_width(doc, doc.query_by_id("b")) == 4.0
    assert static_stroke_width(doc, doc.query_by_id("c")) == 0.0


def test_stroke_grows_element():
    doc = parse_svg(_svg('<rect id="r" x="10" y="10" width="10" height="10" stroke="red" stroke-width="4"/>'))
    result = analyze_element(doc, doc.query_by_id("r"))
    assert result.animated_bounds == BoundingBox(8, 8, 14, 14)


def test_stroke_scales_with_ancestor_transform():
    doc = parse_svg(_svg(
        '<g transform="scale(2)">'
        '<rect id="r" x="10" y="10" width="10" height="10" stroke="black" stroke-width="10"/></g>'
    ))
    result = analyze_element(doc, doc.query_by_id("r"))
    assert result.animated_bounds == BoundingBox(10, 10, 40, 40)
    assert create_pipeline(AnalysisConfig(buffer=0)).optimize_viewbox(doc).optimized_viewbox == "10.00 10.00 40.00 40.00"


def test_stroke_scales_with_animated_transform():
    doc = parse_svg(_svg(
        '<rect id="r" width="10" height="10" stroke="black" stroke-width="2">'
        '<animateTransform attributeName="transform" type="scale" values="1;3" dur="1s"/></rect>'
    ))
    result = analyze_element(doc, doc.query_by_id("r"))
    assert result.animated_bounds.as_tuple() == pytest.approx((-3, -3, 36, 36))


def test_blur_scales_with_ancestor_transform():
    doc = parse_svg(_svg(
        '<defs><filter id="f"><feGaussianBlur stdDeviation="1"/></filter></defs>'
        '<g transform="scale(2)"><rect id="r" x="10" y="10" width="10" height="10" filter="url(#f)"/></g>'
    ))
    result = analyze_element(doc, doc.query_by_id("r"))
    assert result.animated_bounds == BoundingBox(20, 20, 20, 20)
    assert result.effect_expanded_bounds.as_tuple() == pytest.approx((14, 14, 32, 32))


def test_user_space_filter_region_reaches_content():
    doc = parse_svg(_svg(
        '<defs><filter id="flood" filterUnits="userSpaceOnUse" x="0" y="0" width="400" height="400">'
        '<feFlood flood-color="red"/></filter></defs>'
        '<g transform="translate(10,0)">'
        '<rect id="r" x="100" y="100" width="10" height="10" filter="url(#flood)"/></g>'
    ))
    content = BoundsPipeline().run(doc).content
    assert content == BoundingBox(10, 0, 400, 400)


OVERFLOW_PATTERN = (
    '<defs><pattern id="p" width="30" height="30" patternUnits="userSpaceOnUse">'
    '<rect x="10" y="10" width="40" height="35"/></pattern></defs>'
)


def test_pattern_overflow_grows_viewbox():
    doc = parse_svg(_svg(OVERFLOW_PATTERN + '<rect x="100" y="100" width="60" height="60" fill="url(#p)"/>'))
    result = optimize_viewbox(doc, buffer=0)
    assert result.optimized_viewbox == "100.00 100.00 80.00 75.00"


def test_pattern_overflow_follows_element_transform():
    doc = parse_svg(_svg(
        OVERFLOW_PATTERN + '<rect id="r" width="10" height="10" fill="url(#p)" transform="scale(2)"/>'
    ))
    result = analyze_element(doc, doc.query_by_id("r"))
    assert result.has_effects
    assert result.animated_bounds == BoundingBox(0, 0, 20, 20)
    assert result.effect_expanded_bounds == BoundingBox(0, 0, 60, 50)


# ---------------------------------------------------------------------------
# Optimized viewBoxes
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("svg,expected", [
    (ANIMATED_RECT_SVG, "40.00 40.00 180.00 80.00"),
    (CIRCLE_BY_SVG, "-40.00 60.00 180.00 80.00"),
    (HIDDEN_SET_SVG, "0.00 0.00 70.00 70.00"),
    (REVEALED_SVG, "90.00 90.00 40.00 40.00"),
    (TRANSFORM_SVG, "90.00 -10.00 140.00 90.00"),
    (MOTION_SVG, "-15.00 -15.00 130.00 80.00"),
    (CSS_ANIM_SVG, "-10.00 -10.00 130.00 30.00"),
    (FILTER_SVG, "34.00 34.00 72.00 72.00"),
    (USE_SYMBOL_SVG, "90.00 40.00 60.00 60.00"),
    (SWITCH_SVG, "0.00 0.00 50.00 50.00"),
])
def test_optimized_viewbox(svg, expected):
    result = create_pipeline().optimize_viewbox(parse_svg(svg))
    assert result.optimized_viewbox == expected


def test_savings(animated_rect_doc):
    result = optimize_viewbox(animated_rect_doc)
    assert result.original_viewbox == "0.00 0.00 200.00 200.00"
    assert result.original_area == 40000
    assert result.optimized_area == pytest.approx(14400)
    assert result.savings_percentage == pytest.approx(64)
    assert result.changed


def test_zero_buffer(animated_rect_doc):
    result = optimize_viewbox(animated_rect_doc, buffer=0)
    assert result.optimized_viewbox == "50.00 50.00 160.00 60.00"


def test_empty_document_keeps_viewbox():
    result = optimize_viewbox(parse_svg(EMPTY_SVG))
    assert result.content is None
    assert result.optimized_viewbox == "0.00 0.00 64.00 64.00"
    assert result.savings_percentage == 0
    assert not result.changed


def test_switch_follows_configured_language():
    result = optimize_viewbox(parse_svg(SWITCH_SVG), config=AnalysisConfig(system_language="fr"))
    assert result.optimized_viewbox == "190.00 190.00 70.00 70.00"


def test_format_viewbox_precision():
    assert format_viewbox(BoundingBox(0.123, 1, 2.5, 3)) == "0.12 1.00 2.50 3.00"
    assert format_viewbox(BoundingBox(0.123, 1, 2.5, 3), precision=0) == "0 1 2 3"


# ---------------------------------------------------------------------------
# Document run
# ---------------------------------------------------------------------------

def test_run_counts(animated_rect_doc):
    bounds = BoundsPipeline().run(animated_rect_doc)
    assert bounds.element_count == 1
    assert bounds.animation_count == 1
    assert bounds.effects_count == 0
    assert bounds.errors == {}
    assert bounds.processing_time_ms >= 0


def test_hidden_elements_counted():
    bounds = BoundsPipeline().run(parse_svg(HIDDEN_SET_SVG))
    assert bounds.skipped_hidden == 1
    assert [e.element_id for e in bounds.elements] == ["shown"]


def test_unstroked_line_adds_nothing():
    bounds = BoundsPipeline().run(parse_svg(_svg('<line x1="0" y1="10" x2="100" y2="10"/>')))
    assert bounds.content is None


def test_stroked_line_is_kept():
    bounds = BoundsPipeline().run(
        parse_svg(_svg('<line x1="0" y1="10" x2="100" y2="10" stroke="black" stroke-width="2"/>'))
    )
    assert bounds.content == BoundingBox(-1, 9, 102, 2)


def test_element_failure_is_recorded(monkeypatch):
    real = pipeline_module.analyze_element

    def flaky(doc, el, *args):
        if el.get("id") == "bad":
            raise ValueError("boom")
        return real(doc, el, *args)

    monkeypatch.setattr(pipeline_module, "analyze_element", flaky)
    doc = parse_svg(_svg(
        '<rect id="good" x="0" y="0" width="10" height="10"/>'
        '<rect id="bad" x="100" y="100" width="10" height="10"/>'
    ))
    bounds = BoundsPipeline().run(doc)
    assert bounds.errors == {"bad": "boom"}
    assert bounds.content == BoundingBox(0, 0, 10, 10)
