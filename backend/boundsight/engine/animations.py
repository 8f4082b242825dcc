"""Collects every animation descriptor that applies to one element."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import AnimationDescriptor, BoundingBox
from boundsight.engine.css_animation import analyze_css_animation
from boundsight.engine.registry import get_registry
from boundsight.svg.structure import find_animation_elements

if TYPE_CHECKING:
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)


def compute_animations(
    doc: SvgDocument,
    el: ET.Element,
    config: AnalysisConfig | None = None,
    base_bounds: BoundingBox | None = None,
) -> list[AnimationDescriptor]:
    """SMIL descriptors in document order, then CSS keyframe animations.

    CSS envelopes are measured against ``base_bounds``, so they are only
    produced when it is given.
    """
    config = config or AnalysisConfig()
    registry = get_registry()

    descriptors: list[AnimationDescriptor] = []
    for anim in find_animation_elements(doc, el):
        tag = doc.tag(anim)
        if tag not in registry:
            logger.debug("No analyzer for <%s>", tag)
            continue
        descriptor = registry.get(tag).fn(doc, anim, config)
        if descriptor is not None:
            descriptors.append(descriptor)

    if base_bounds is not None:
        descriptors.extend(analyze_css_animation(doc, el, base_bounds, config))
    return descriptors
