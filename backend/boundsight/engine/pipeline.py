"""Document orchestrator — folds every content element into one content box."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from boundsight.engine.analyzer import analyze_element
from boundsight.engine.config import AnalysisConfig
from boundsight.engine.context import BoundingBox, ElementBoundsResult, union_optional
from boundsight.engine.registry import load_analyzers
from boundsight.svg.document import SvgDocument
from boundsight.svg.structure import ancestor_transform, is_hidden, iter_content_elements

logger = logging.getLogger(__name__)


@dataclass
class DocumentBounds:
    content: BoundingBox | None = None
    elements: list[ElementBoundsResult] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    element_count: int = 0
    animation_count: int = 0
    effects_count: int = 0
    skipped_hidden: int = 0
    processing_time_ms: float = 0.0


@dataclass
class OptimizationResult:
    original_viewbox: str | None
    optimized_viewbox: str
    original_area: float
    optimized_area: float
    savings_percentage: float
    content: BoundingBox | None
    bounds: DocumentBounds

    @property
    def changed(self) -> bool:
        return self.original_viewbox != self.optimized_viewbox


def format_viewbox(box: BoundingBox, precision: int = 2) -> str:
    return " ".join(f"{v:.{precision}f}" for v in box.as_tuple())


class BoundsPipeline:
    """Runs ``analyze_element`` over every rendered element of a document."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    def run(self, doc: SvgDocument) -> DocumentBounds:
        start = time.perf_counter()
        result = DocumentBounds()

        for el in iter_content_elements(doc, self.config.system_language):
            element_id = doc.element_id(el)
            if is_hidden(doc, el):
                result.skipped_hidden += 1
                logger.debug("  %s hidden, skipped", element_id)
                continue

            t0 = time.perf_counter()
            try:
                bounds = analyze_element(doc, el, ancestor_transform(doc, el), self.config)
            except Exception as e:
                result.errors[element_id] = str(e)
                logger.warning("  %s FAILED: %s", element_id, e)
                continue

            if bounds is None:
                continue
            # A zero-area line still paints when stroked
            painted_empty = bounds.base_bounds.is_empty and bounds.effect_expanded_bounds.is_empty
            if painted_empty and not (bounds.has_animations or bounds.has_effects):
                logger.debug("  %s has an empty box, skipped", element_id)
                continue

            result.elements.append(bounds)
            result.content = union_optional(result.content, bounds.effect_expanded_bounds)
            result.animation_count += bounds.animation_count
            result.effects_count += int(bounds.has_effects)
            elapsed = (time.perf_counter() - t0) * 1000
            logger.debug("  %s analyzed in %.1fms", element_id, elapsed)

        result.element_count = len(result.elements)
        result.processing_time_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Bounds complete: %d elements, %d animations, %d with effects in %.0fms",
            result.element_count,
            result.animation_count,
            result.effects_count,
            result.processing_time_ms,
        )
        return result

    def optimize_viewbox(self, doc: SvgDocument, buffer: float | None = None) -> OptimizationResult:
        buffer = self.config.buffer if buffer is None else buffer
        precision = self.config.viewbox_precision
        bounds = self.run(doc)

        original = doc.viewbox
        original_text = format_viewbox(original, precision) if original else None
        original_area = original.area if original else 0.0

        if bounds.content is None:
            logger.info("No visible content, keeping the original viewBox")
            optimized = original or BoundingBox()
        else:
            content = bounds.content
            optimized = BoundingBox(
                content.x - buffer,
                content.y - buffer,
                content.width + 2 * buffer,
                content.height + 2 * buffer,
            )

        savings = 0.0
        if original_area > 0:
            savings = (original_area - optimized.area) / original_area * 100

        return OptimizationResult(
            original_viewbox=original_text,
            optimized_viewbox=format_viewbox(optimized, precision),
            original_area=original_area,
            optimized_area=optimized.area,
            savings_percentage=savings,
            content=bounds.content,
            bounds=bounds,
        )


def optimize_viewbox(doc: SvgDocument, buffer: float = 10.0, config: AnalysisConfig | None = None) -> OptimizationResult:
    return BoundsPipeline(config).optimize_viewbox(doc, buffer)


def create_pipeline(config: AnalysisConfig | None = None) -> BoundsPipeline:
    """Create a pipeline with every SMIL analyzer loaded."""
    load_analyzers()
    return BoundsPipeline(config)
