"""Shared test fixtures."""

from __future__ import annotations

import pytest

from boundsight.svg.parser import parse_svg


# Animated documents with hand-checked content boxes

ANIMATED_RECT_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <rect id="box" x="50" y="50" width="60" height="60" fill="#4ECDC4">
    <animate attributeName="x" from="50" to="150" dur="2s" repeatCount="indefinite"/>
  </rect>
</svg>'''

CIRCLE_BY_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <circle id="dot" cx="100" cy="100" r="30" fill="#FF6B6B">
    <animate attributeName="cx" by="100" dur="2s"/>
  </circle>
</svg>'''

HIDDEN_SET_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <rect id="shown" x="10" y="10" width="50" height="50"/>
  <rect id="ghost" x="200" y="200" width="50" height="50">
    <set attributeName="display" to="none" begin="0s"/>
  </rect>
</svg>'''

REVEALED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <rect id="late" x="100" y="100" width="20" height="20" opacity="0">
    <set attributeName="opacity" to="1" begin="click"/>
  </rect>
  <rect id="never" x="250" y="250" width="20" height="20" opacity="0"/>
</svg>'''

TRANSFORM_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 400">
  <g transform="translate(100,0)">
    <rect id="slider" x="0" y="0" width="20" height="20">
      <animateTransform attributeName="transform" type="translate" values="0 0;100 50" dur="2s"/>
    </rect>
  </g>
</svg>'''

MOTION_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <circle id="ball" cx="0" cy="0" r="5">
    <animateMotion path="M0,0 L100,50" dur="3s" repeatCount="indefinite"/>
  </circle>
</svg>'''

CSS_ANIM_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <style>
    @keyframes slide {
      from { transform: translateX(0); }
      to { transform: translateX(100px); }
    }
    .mover { animation: slide 2s ease-in-out infinite; }
  </style>
  <rect id="css-box" class="mover" x="0" y="0" width="10" height="10"/>
</svg>'''

FILTER_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <defs>
    <filter id="soft"><feGaussianBlur stdDeviation="2"/></filter>
  </defs>
  <rect id="blurred" x="50" y="50" width="40" height="40" filter="url(#soft)"/>
</svg>'''

USE_SYMBOL_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 300 300">
  <defs>
    <symbol id="icon" viewBox="0 0 10 10">
      <rect x="0" y="0" width="10" height="10"/>
    </symbol>
  </defs>
  <use id="placed" xlink:href="#icon" x="100" y="50" width="40" height="40"/>
</svg>'''

SWITCH_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <switch>
    <rect id="french" systemLanguage="fr" x="200" y="200" width="50" height="50"/>
    <rect id="fallback" x="10" y="10" width="30" height="30"/>
    <rect id="unused" x="100" y="100" width="30" height="30"/>
  </switch>
</svg>'''

EMPTY_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64">
  <defs><rect id="template" width="10" height="10"/></defs>
</svg>'''


@pytest.fixture
def animated_rect_doc():
    return parse_svg(ANIMATED_RECT_SVG)


@pytest.fixture
def circle_by_doc():
    return parse_svg(CIRCLE_BY_SVG)


@pytest.fixture
def transform_doc():
    return parse_svg(TRANSFORM_SVG)


@pytest.fixture
def css_anim_doc():
    return parse_svg(CSS_ANIM_SVG)


@pytest.fixture
def filter_doc():
    return parse_svg(FILTER_SVG)


@pytest.fixture
def use_symbol_doc():
    return parse_svg(USE_SYMBOL_SVG)
