"""<set> — discrete attribute changes on an allow-list of visual attributes.

``begin`` must be a plain time or a DOM event with an optional offset; any
other form (syncbase chains, ``indefinite``) drops the element.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.context import SetAnimation
from boundsight.engine.registry import analyzer
from boundsight.engine.timing import parse_timing

if TYPE_CHECKING:
    from boundsight.engine.config import AnalysisConfig
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

SUPPORTED_ATTRIBUTES = {
    # visibility
    "opacity", "display", "visibility",
    # geometry
    "x", "y", "width", "height", "cx", "cy", "r", "rx", "ry",
    # paint
    "fill", "stroke", "stroke-width", "fill-opacity", "stroke-opacity",
    "transform",
}

_TIME_RE = re.compile(r"^(\d*\.?\d+)(s|ms)?$")
_EVENT_RE = re.compile(
    r"^(click|mouseover|mouseout|mouseenter|mouseleave|focus|blur)(\+(\d*\.?\d+)(s|ms)?)?$"
)


def parse_set_begin(begin: str) -> tuple[float, bool] | None:
    """Return (begin seconds, is_event_based), or None when unsupported."""
    begin = begin.strip()
    match = _TIME_RE.match(begin)
    if match:
        value = float(match.group(1))
        return (value / 1000 if match.group(2) == "ms" else value), False
    match = _EVENT_RE.match(begin)
    if match:
        offset = 0.0
        if match.group(3):
            offset = float(match.group(3))
            if match.group(4) == "ms":
                offset /= 1000
        return offset, True
    return None


@analyzer(tag="set", description="Discrete set of a visual attribute")
def analyze_set(doc: SvgDocument, anim: ET.Element, config: AnalysisConfig) -> SetAnimation | None:
    name = (doc.get_attribute(anim, "attributeName") or "").strip()
    if name not in SUPPORTED_ATTRIBUTES:
        logger.debug("set on unsupported attribute %r dropped", name)
        return None

    begin = parse_set_begin(doc.get_attribute(anim, "begin") or "0s")
    if begin is None:
        logger.debug("set with begin=%r dropped", doc.get_attribute(anim, "begin"))
        return None

    begin_time, event_based = begin
    return SetAnimation(
        attribute_name=name,
        to=(doc.get_attribute(anim, "to") or "").strip(),
        begin_time=begin_time,
        is_event_based=event_based,
        timing=parse_timing(lambda attr: doc.get_attribute(anim, attr)),
    )
