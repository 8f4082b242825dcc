"""<animateMotion> — bounds of the motion path plus a rotation pad.

Path source precedence: ``path`` attribute, ``values`` attribute, then an
<mpath> child referencing a <path>. ``rotate="auto"`` adds no pad; modelling
the element's extent along the tangent is out of reach without its geometry.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from boundsight.engine.context import MotionAnimation, PathBounds
from boundsight.engine.path_geometry import motion_values_bounds, path_bounds
from boundsight.engine.registry import analyzer
from boundsight.engine.timing import parse_timing

if TYPE_CHECKING:
    from boundsight.engine.config import AnalysisConfig
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)


def motion_path_bounds(doc: SvgDocument, anim: ET.Element) -> PathBounds:
    path = doc.get_attribute(anim, "path")
    if path:
        return path_bounds(path)
    values = doc.get_attribute(anim, "values")
    if values:
        return motion_values_bounds(values)
    for child in doc.children(anim):
        if doc.tag(child) != "mpath":
            continue
        target = doc.resolve_href(doc.href(child))
        if target is not None and doc.tag(target) == "path":
            return path_bounds(doc.get_attribute(target, "d"))
        logger.debug("mpath target %r is not a path", doc.href(child))
    return PathBounds()


def rotation_pad(rotate: str, pad: float) -> float:
    """Extra margin for a fixed ``rotate`` angle: |sin|*pad + |cos|*pad."""
    if rotate in ("auto", "auto-reverse"):
        return 0.0
    try:
        angle = float(rotate)
    except ValueError:
        return 0.0
    if angle == 0:
        return 0.0
    rad = math.radians(angle)
    return abs(math.sin(rad)) * pad + abs(math.cos(rad)) * pad


@analyzer(tag="animateMotion", description="Motion path bounds with fixed-angle rotation pad")
def analyze_animate_motion(doc: SvgDocument, anim: ET.Element, config: AnalysisConfig) -> MotionAnimation:
    rotate = (doc.get_attribute(anim, "rotate") or "0").strip()
    bounds = motion_path_bounds(doc, anim)
    return MotionAnimation(
        timing=parse_timing(lambda name: doc.get_attribute(anim, name)),
        rotate=rotate,
        motion_bounds=bounds,
        rotation_expanded_bounds=bounds.padded(rotation_pad(rotate, config.motion_rotation_pad)),
    )
