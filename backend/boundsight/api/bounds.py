"""POST /api/bounds — animated-content viewBox optimization."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from boundsight.config import Settings
from boundsight.dependencies import get_settings
from boundsight.engine.context import BoundingBox
from boundsight.engine.pipeline import OptimizationResult, create_pipeline
from boundsight.models.requests import BoundsRequest
from boundsight.models.responses import Box, BoundsResponse, ElementBounds, Savings
from boundsight.svg.parser import MissingViewBoxError, SvgParseError, parse_svg, require_viewbox
from boundsight.svg.serializer import apply_viewbox

logger = logging.getLogger(__name__)

router = APIRouter()


def _box(box: BoundingBox) -> Box:
    return Box(x=box.x, y=box.y, width=box.width, height=box.height)


def _to_response(result: OptimizationResult, svg: str, include_elements: bool, elapsed: float) -> BoundsResponse:
    bounds = result.bounds
    elements = []
    if include_elements:
        elements = [
            ElementBounds(
                element_id=item.element_id,
                tag=item.tag,
                base_bounds=_box(item.base_bounds),
                animated_bounds=_box(item.animated_bounds),
                final_bounds=_box(item.effect_expanded_bounds),
                has_animations=item.has_animations,
                has_effects=item.has_effects,
                animation_count=item.animation_count,
            )
            for item in bounds.elements
        ]
    return BoundsResponse(
        original_viewbox=result.original_viewbox,
        optimized_viewbox=result.optimized_viewbox,
        content=_box(result.content) if result.content else None,
        element_count=bounds.element_count,
        animation_count=bounds.animation_count,
        effects_count=bounds.effects_count,
        savings=Savings(
            original_area=round(result.original_area, 2),
            optimized_area=round(result.optimized_area, 2),
            percentage=round(result.savings_percentage, 1),
        ),
        elements=elements,
        optimized_svg=apply_viewbox(svg, result.optimized_viewbox),
        errors=bounds.errors,
        processing_time_ms=round(elapsed, 1),
    )


@router.post("/bounds", response_model=BoundsResponse)
async def bounds(req: BoundsRequest, settings: Settings = Depends(get_settings)) -> BoundsResponse:
    start = time.perf_counter()

    try:
        doc = parse_svg(req.svg)
        require_viewbox(doc)
    except (SvgParseError, MissingViewBoxError) as e:
        logger.info("Rejected SVG: %s", e)
        raise HTTPException(status_code=422, detail=str(e)) from e

    buffer = settings.default_buffer if req.buffer is None else req.buffer
    result = create_pipeline().optimize_viewbox(doc, buffer)

    elapsed = (time.perf_counter() - start) * 1000
    return _to_response(result, req.svg, req.include_elements, elapsed)
