"""<animateTransform> — one matrix per keyframe."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.context import TransformAnimation, TransformKeyframe
from boundsight.engine.registry import analyzer
from boundsight.engine.timing import build_keyframes, parse_timing
from boundsight.engine.transforms import transform_from_value, transform_value
from boundsight.utils.geometry import parse_number_list

if TYPE_CHECKING:
    from boundsight.engine.config import AnalysisConfig
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

_TRANSFORM_TYPES = {"translate", "scale", "rotate", "skewx", "skewy", "matrix"}


@analyzer(tag="animateTransform", description="Keyframe matrices for translate/scale/rotate/skew/matrix")
def analyze_animate_transform(
    doc: SvgDocument, anim: ET.Element, config: AnalysisConfig
) -> TransformAnimation | None:
    transform_type = (doc.get_attribute(anim, "type") or "translate").strip()
    if transform_type.lower() not in _TRANSFORM_TYPES:
        logger.debug("Unknown animateTransform type %r, no contribution", transform_type)
        return None

    def parse(text: str):
        return transform_value(transform_type, parse_number_list(text))

    get = lambda name: doc.get_attribute(anim, name)  # noqa: E731
    keyframes = build_keyframes(get, parse)
    if not keyframes:
        return None

    return TransformAnimation(
        transform_type=transform_type,
        additive=(doc.get_attribute(anim, "additive") or "").strip() == "sum",
        timing=parse_timing(get),
        keyframes=tuple(
            TransformKeyframe(time=kf.time, matrix=transform_from_value(kf.value), raw=kf.value)
            for kf in keyframes
        ),
    )
