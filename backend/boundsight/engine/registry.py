"""Analyzer registry — every SMIL analyzer is a standalone function registered via decorator.

Usage:
    @analyzer(tag="animateTransform", description="Keyframe matrices per transform value")
    def analyze_animate_transform(doc, anim, config) -> TransformAnimation | None:
        ...

Supporting a new animation element = creating one module in
``boundsight.engine.analyzers`` with the decorator. Nothing else changes.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional
from xml.etree.ElementTree import Element

if TYPE_CHECKING:
    from boundsight.engine.config import AnalysisConfig
    from boundsight.engine.context import AnimationDescriptor
    from boundsight.svg.document import SvgDocument

logger = logging.getLogger(__name__)

AnalyzerFn = Callable[["SvgDocument", Element, "AnalysisConfig"], Optional["AnimationDescriptor"]]

ANALYZER_PACKAGE = "boundsight.engine.analyzers"


@dataclass
class AnalyzerSpec:
    tag: str
    fn: AnalyzerFn
    description: str = ""


class AnalyzerRegistry:
    """Registry of animation analyzers keyed by element tag."""

    def __init__(self) -> None:
        self._analyzers: dict[str, AnalyzerSpec] = {}

    def register(self, spec: AnalyzerSpec) -> None:
        if spec.tag in self._analyzers:
            raise ValueError(f"Duplicate analyzer for tag: {spec.tag}")
        self._analyzers[spec.tag] = spec
        logger.debug("Registered analyzer for <%s>", spec.tag)

    def get(self, tag: str) -> AnalyzerSpec:
        return self._analyzers[tag]

    def __contains__(self, tag: str) -> bool:
        return tag in self._analyzers

    def all(self) -> list[AnalyzerSpec]:
        return sorted(self._analyzers.values(), key=lambda s: s.tag)

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self._analyzers)

    @property
    def count(self) -> int:
        return len(self._analyzers)


# Module-level singleton
_registry = AnalyzerRegistry()
_loaded = False


def load_analyzers() -> None:
    """Import every analyzer module so @analyzer decorators fire."""
    global _loaded
    if _loaded:
        return
    _loaded = True
    package = importlib.import_module(ANALYZER_PACKAGE)
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"{ANALYZER_PACKAGE}.{module_name}")


def get_registry() -> AnalyzerRegistry:
    load_analyzers()
    return _registry


def analyzer(*, tag: str, description: str = ""):
    """Decorator to register an analyzer function for one element tag."""

    def decorator(fn: AnalyzerFn):
        _registry.register(AnalyzerSpec(tag=tag, fn=fn, description=description))
        return fn

    return decorator
