"""BoundSight animated-bounds engine."""

from boundsight.engine.registry import analyzer, get_registry, load_analyzers
from boundsight.engine.context import BoundingBox, ElementBoundsResult

__all__ = [
    "analyzer",
    "get_registry",
    "load_analyzers",
    "BoundingBox",
    "ElementBoundsResult",
]
