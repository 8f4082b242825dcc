"""SVG parser — raw text to ``SvgDocument``.

The only fatal conditions live here: text that is not an SVG document, and a
root without a ``viewBox`` when the caller needs one.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from boundsight.engine.context import BoundingBox
from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)


class SvgParseError(ValueError):
    """The input is not well-formed XML or its root is not <svg>."""


class MissingViewBoxError(ValueError):
    """The root <svg> has no usable viewBox attribute."""


def parse_svg(svg_text: str) -> SvgDocument:
    """Parse raw SVG string into an SvgDocument."""
    try:
        root = ET.fromstring(svg_text.strip())
    except ET.ParseError as e:
        raise SvgParseError(f"Invalid SVG markup: {e}") from e

    doc = SvgDocument(root, svg_text)
    if doc.tag(root) != "svg":
        raise SvgParseError(f"Root element is <{doc.tag(root)}>, expected <svg>")

    logger.debug("Parsed SVG: %d elements", sum(1 for _ in doc.iter_elements()))
    return doc


def require_viewbox(doc: SvgDocument) -> BoundingBox:
    viewbox = doc.viewbox
    if viewbox is None:
        raise MissingViewBoxError("SVG root has no viewBox attribute")
    return viewbox
