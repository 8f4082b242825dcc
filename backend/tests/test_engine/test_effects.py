"""Tests for filter, mask and clip-path effects."""

import pytest

from boundsight.engine.context import BoundingBox
from boundsight.engine.effects import (
    ElementEffects,
    FilterExpansion,
    analyze_css_filters,
    analyze_effects,
    apply_filter_expansion,
    expand_for_effects,
)
from boundsight.svg.parser import parse_svg

SQUARE = BoundingBox(0, 0, 10, 10)


def _effects(defs: str, attrs: str):
    doc = parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
        f'<defs>{defs}</defs><rect id="r" width="10" height="10" {attrs}/></svg>'
    )
    return analyze_effects(doc, doc.query_by_id("r"))


def _grown(effects: ElementEffects, box: BoundingBox = SQUARE):
    return expand_for_effects(effects, box).as_tuple()


# ---------------------------------------------------------------------------
# <filter> definitions
# ---------------------------------------------------------------------------

def test_gaussian_blur():
    fx = _effects('<filter id="f"><feGaussianBlur stdDeviation="2"/></filter>', 'filter="url(#f)"')
    assert fx.has_filter
    assert fx.filter_expansion == FilterExpansion(6, 6, 12, 12, is_pixel_based=True)
    assert _grown(fx) == pytest.approx((-6, -6, 22, 22))


def test_blur_uses_largest_std_deviation():
    fx = _effects('<filter id="f"><feGaussianBlur stdDeviation="1 3"/></filter>', 'filter="url(#f)"')
    assert fx.filter_expansion.x == 9


def test_offset_is_directional():
    fx = _effects('<filter id="f"><feOffset dx="5" dy="-3"/></filter>', 'filter="url(#f)"')
    assert _grown(fx) == pytest.approx((0, -3, 15, 13))


def test_chained_offsets_accumulate():
    fx = _effects(
        '<filter id="f"><feOffset dx="10"/><feOffset dx="10" dy="-4"/></filter>', 'filter="url(#f)"'
    )
    assert _grown(fx) == pytest.approx((0, -4, 30, 14))


def test_drop_shadow_defaults():
    fx = _effects('<filter id="f"><feDropShadow/></filter>', 'filter="url(#f)"')
    # dx = dy = 2 and stdDeviation = 2
    assert _grown(fx) == pytest.approx((-6, -6, 24, 24))


def test_dilate_radius():
    fx = _effects('<filter id="f"><feMorphology operator="dilate" radius="4"/></filter>', 'filter="url(#f)"')
    assert _grown(fx) == pytest.approx((-4, -4, 18, 18))


def test_erode_adds_nothing_beyond_region():
    fx = _effects(
        '<filter id="f" x="0" y="0" width="1" height="1"><feMorphology operator="erode" radius="4"/></filter>',
        'filter="url(#f)"',
    )
    assert fx.filter_expansion.is_zero


def test_default_filter_region():
    fx = _effects('<filter id="f"><feColorMatrix type="saturate" values="0"/></filter>', 'filter="url(#f)"')
    exp = fx.filter_expansion
    assert not exp.is_pixel_based
    assert (exp.x, exp.y, exp.width, exp.height) == pytest.approx((0.1, 0.1, 0.2, 0.2))
    assert _grown(fx, BoundingBox(0, 0, 100, 50)) == pytest.approx((-10, -5, 120, 60))


def test_explicit_filter_region():
    fx = _effects(
        '<filter id="f" x="-25%" y="0%" width="150%" height="100%"><feFlood/></filter>', 'filter="url(#f)"'
    )
    assert fx.filter_expansion == FilterExpansion(0.25, 0, 0.5, 0)


def test_user_space_region_is_absolute():
    fx = _effects(
        '<filter id="f" filterUnits="userSpaceOnUse" x="-50" y="0" width="400" height="400"><feFlood/></filter>',
        'filter="url(#f)"',
    )
    assert fx.has_filter
    assert fx.filter_expansion.region == BoundingBox(-50, 0, 400, 400)
    assert _grown(fx) == (-50, 0, 400, 400)


def test_user_space_region_defaults_to_viewport_percentages():
    fx = _effects('<filter id="f" filterUnits="userSpaceOnUse"><feFlood/></filter>', 'filter="url(#f)"')
    assert fx.filter_expansion.region.as_tuple() == pytest.approx((-10, -10, 120, 120))


def test_unresolved_filter_reference():
    fx = _effects("", 'filter="url(#missing)"')
    assert fx.has_filter
    assert _grown(fx) == SQUARE.as_tuple()


def test_filter_from_inline_style():
    fx = _effects('<filter id="f"><feGaussianBlur stdDeviation="1"/></filter>', 'style="filter: url(#f)"')
    assert fx.filter_expansion.x == 3


# ---------------------------------------------------------------------------
# CSS filter functions
# ---------------------------------------------------------------------------

def test_css_blur():
    assert analyze_css_filters("blur(4px)") == FilterExpansion(12, 12, 24, 24, is_pixel_based=True)


def test_css_drop_shadow_with_color():
    exp = analyze_css_filters("drop-shadow(2px 4px 3px rgba(0, 0, 0, 0.5))")
    assert exp == FilterExpansion(9, 9, 20, 22, is_pixel_based=True)


def test_css_filters_take_largest():
    exp = analyze_css_filters("blur(1px) drop-shadow(-10px 0px 0px black)")
    assert exp.x == 10
    assert exp.width == 10


def test_css_filter_on_element():
    fx = _effects("", 'style="filter: blur(2px)"')
    assert _grown(fx) == pytest.approx((-6, -6, 22, 22))


# ---------------------------------------------------------------------------
# Applying expansions
# ---------------------------------------------------------------------------

def test_large_coefficients_read_as_pixels():
    grown = apply_filter_expansion(SQUARE, FilterExpansion(2, 0, 4, 0))
    assert grown.as_tuple() == pytest.approx((-2, 0, 14, 10))


def test_fractional_expansion_scales_with_box():
    grown = apply_filter_expansion(BoundingBox(0, 0, 100, 100), FilterExpansion(0.1, 0.1, 0.2, 0.2))
    assert grown.as_tuple() == pytest.approx((-10, -10, 120, 120))


# ---------------------------------------------------------------------------
# Masks and clip paths
# ---------------------------------------------------------------------------

def test_mask_and_clip_never_shrink():
    fx = _effects(
        '<mask id="m"><rect width="2" height="2"/></mask><clipPath id="c"><rect width="1" height="1"/></clipPath>',
        'mask="url(#m)" clip-path="url(#c)"',
    )
    assert fx.has_mask and fx.has_clip_path
    assert fx.preserve_full_bounds
    assert fx.has_any_effects
    assert not fx.has_filter
    assert _grown(fx) == SQUARE.as_tuple()


def test_none_values_are_absent():
    fx = _effects("", 'filter="none" mask="none"')
    assert not fx.has_any_effects


# ---------------------------------------------------------------------------
# Pattern paint
# ---------------------------------------------------------------------------

def _pattern(content: str, attrs: str = 'width="20" height="20" patternUnits="userSpaceOnUse"') -> str:
    return f'<pattern id="p" {attrs}>{content}</pattern>'


def test_pattern_overflow_on_every_side():
    fx = _effects(_pattern('<circle cx="10" cy="10" r="20"/>'), 'fill="url(#p)"')
    assert fx.has_pattern_overflow
    assert fx.has_any_effects
    assert _grown(fx) == pytest.approx((-10, -10, 30, 30))


def test_pattern_contained_in_tile_adds_nothing():
    fx = _effects(_pattern('<circle cx="10" cy="10" r="5"/>'), 'fill="url(#p)"')
    assert not fx.has_pattern_overflow
    assert not fx.has_any_effects
    assert _grown(fx) == SQUARE.as_tuple()


def test_pattern_asymmetric_overflow():
    defs = _pattern('<rect x="10" y="10" width="40" height="35"/>', 'width="30" height="30" patternUnits="userSpaceOnUse"')
    fx = _effects(defs, 'fill="url(#p)"')
    assert fx.pattern_overflow == FilterExpansion(0, 0, 20, 15, is_pixel_based=True)
    assert _grown(fx) == (0, 0, 30, 25)


def test_pattern_several_children():
    defs = _pattern(
        '<circle cx="20" cy="20" r="25"/>'
        '<rect x="-5" y="15" width="20" height="20"/>'
        '<path d="M 30,30 L 50,50"/>',
        'width="40" height="40" patternUnits="userSpaceOnUse"',
    )
    assert _grown(_effects(defs, 'fill="url(#p)"')) == pytest.approx((-5, -5, 25, 25))


@pytest.mark.parametrize("transform,expected", [
    ("scale(2)", (0, 0, 50, 40)),
    ("translate(100, 100)", (0, 0, 30, 25)),
    ("rotate(90)", (-15, 0, 25, 30)),
])
def test_pattern_transform_maps_overhang(transform, expected):
    defs = _pattern(
        '<rect x="10" y="10" width="40" height="35"/>',
        f'width="30" height="30" patternUnits="userSpaceOnUse" patternTransform="{transform}"',
    )
    assert _grown(_effects(defs, 'fill="url(#p)"')) == pytest.approx(expected)


def test_pattern_child_transform():
    defs = _pattern('<rect width="10" height="10" transform="translate(15, 0)"/>')
    assert _grown(_effects(defs, 'fill="url(#p)"')) == (0, 0, 15, 10)


def test_pattern_bounding_box_units():
    defs = _pattern(
        '<rect width="0.75" height="0.5"/>',
        'width="0.5" height="0.5" patternContentUnits="objectBoundingBox"',
    )
    assert _grown(_effects(defs, 'fill="url(#p)"')) == pytest.approx((0, 0, 12.5, 10))


def test_pattern_inherits_content_through_href():
    defs = _pattern('<circle cx="10" cy="10" r="20"/>') + '<pattern id="q" href="#p"/>'
    assert _grown(_effects(defs, 'fill="url(#q)"')) == pytest.approx((-10, -10, 30, 30))


def test_fill_and_stroke_patterns_combine_per_side():
    defs = (
        _pattern('<rect width="30" height="10"/>')
        + '<pattern id="s" width="20" height="20" patternUnits="userSpaceOnUse"><rect x="-5" width="10" height="10"/></pattern>'
    )
    assert _grown(_effects(defs, 'fill="url(#p)" stroke="url(#s)"')) == (-5, 0, 25, 10)


@pytest.mark.parametrize("defs,attrs", [
    (_pattern(""), 'fill="url(#p)"'),
    ("", 'fill="url(#missing)"'),
    ('<linearGradient id="g"/>', 'fill="url(#g)"'),
    (_pattern('<circle cx="10" cy="10" r="20"/>', 'width="0" height="20" patternUnits="userSpaceOnUse"'), 'fill="url(#p)"'),
])
def test_pattern_without_overflow(defs, attrs):
    fx = _effects(defs, attrs)
    assert not fx.has_pattern_overflow
    assert _grown(fx) == SQUARE.as_tuple()
