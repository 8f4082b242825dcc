"""Per-element bounds: intrinsic box -> transforms -> animation envelope -> effects."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.animations import compute_animations
from boundsight.engine.combiner import combine
from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import ElementBoundsResult
from boundsight.engine.effects import analyze_effects
from boundsight.engine.timing import leading_number
from boundsight.engine.transforms import AffineTransform
from boundsight.svg.geometry import local_transform
from boundsight.svg.structure import ancestor_transform as cumulative_ancestor_transform

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)


def static_stroke_width(doc: SvgDocument, el: ET.Element) -> float:
    """Painted stroke width, or 0 when the element has no stroke."""
    stroke = doc.get_computed_style_property(el, "stroke")
    if stroke in ("", "none"):
        return 0.0
    width = leading_number(doc.get_computed_style_property(el, "stroke-width"))
    return 1.0 if width is None else max(0.0, width)


def analyze_element(
    doc: SvgDocument,
    el: ET.Element,
    ancestor_transform: AffineTransform | None = None,
    config: AnalysisConfig | None = None,
) -> ElementBoundsResult | None:
    """Full bounds analysis of one content element.

    Returns None when the element has no intrinsic geometry at all.
    """
    config = config or AnalysisConfig()
    base = doc.intrinsic_bbox(el)
    if base is None:
        logger.debug("%s has no geometry", doc.element_id(el))
        return None

    if ancestor_transform is None:
        ancestor_transform = cumulative_ancestor_transform(doc, el)
    local = local_transform(doc, el)

    animations = compute_animations(doc, el, config, base)
    effects = analyze_effects(doc, el, config, base)

    transformed = ancestor_transform.multiply(local).transform_bounds(base)
    stroke_width = static_stroke_width(doc, el)
    animated = combine(
        animations,
        base,
        local_transform=local,
        ancestor_transform=ancestor_transform,
        stroke_width=stroke_width,
    )
    expanded = animated
    if effects.grows_bounds:
        expanded = combine(
            animations,
            base,
            local_transform=local,
            ancestor_transform=ancestor_transform,
            stroke_width=stroke_width,
            effects=effects,
        )

    return ElementBoundsResult(
        element_id=doc.element_id(el),
        tag=doc.tag(el),
        base_bounds=base,
        transformed_bounds=transformed,
        animated_bounds=animated,
        effect_expanded_bounds=expanded,
        has_animations=bool(animations),
        has_effects=effects.has_any_effects,
        animation_count=len(animations),
    )
