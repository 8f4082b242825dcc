"""<animate> — attribute keyframes.

Geometric interpretation of the values (x, cx, r, stroke-width, ...) happens
in the combiner so every attribute animation shares one mapping table.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.context import AttributeAnimation
from boundsight.engine.registry import analyzer
from boundsight.engine.timing import build_keyframes, parse_attribute_value, parse_timing

if TYPE_CHECKING:
    from boundsight.engine.config import AnalysisConfig
    from boundsight.svg.document import SvgDocument


@analyzer(tag="animate", description="Attribute keyframes (numeric, text or path data)")
def analyze_animate(doc: SvgDocument, anim: ET.Element, config: AnalysisConfig) -> AttributeAnimation | None:
    name = (doc.get_attribute(anim, "attributeName") or "").strip()
    if not name:
        return None

    get = lambda attr: doc.get_attribute(anim, attr)  # noqa: E731
    keyframes = build_keyframes(get, lambda text: parse_attribute_value(name, text))
    if not keyframes:
        return None
    return AttributeAnimation(attribute_name=name, timing=parse_timing(get), values=tuple(keyframes))
