"""Write an optimized viewBox back into the original SVG text.

Only the root tag is touched so the rest of the markup (comments, formatting,
namespace prefixes) comes back byte-for-byte.
"""

from __future__ import annotations

import re

_ROOT_TAG_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_VIEWBOX_ATTR_RE = re.compile(r"""\sviewBox\s*=\s*(["'])[^"']*\1""")


def apply_viewbox(svg_text: str, viewbox: str) -> str:
    """Replace (or add) the root ``viewBox`` attribute."""
    match = _ROOT_TAG_RE.search(svg_text)
    if not match:
        return svg_text
    tag = match.group(0)
    if _VIEWBOX_ATTR_RE.search(tag):
        new_tag = _VIEWBOX_ATTR_RE.sub(f' viewBox="{viewbox}"', tag, count=1)
    else:
        close = -2 if tag.endswith("/>") else -1
        new_tag = f'{tag[:close]} viewBox="{viewbox}"{tag[close:]}'
    return svg_text[: match.start()] + new_tag + svg_text[match.end():]
