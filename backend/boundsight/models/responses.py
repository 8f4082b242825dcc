"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    analyzers_registered: int = 0


class AnalyzerInfo(BaseModel):
    tag: str
    description: str = ""


class Box(BaseModel):
    x: float
    y: float
    width: float
    height: float


class ElementBounds(BaseModel):
    element_id: str
    tag: str
    base_bounds: Box
    animated_bounds: Box
    final_bounds: Box
    has_animations: bool = False
    has_effects: bool = False
    animation_count: int = 0


class Savings(BaseModel):
    original_area: float = 0.0
    optimized_area: float = 0.0
    percentage: float = 0.0


class BoundsResponse(BaseModel):
    original_viewbox: str | None = None
    optimized_viewbox: str
    content: Box | None = None
    element_count: int = 0
    animation_count: int = 0
    effects_count: int = 0
    savings: Savings = Field(default_factory=Savings)
    elements: list[ElementBounds] = Field(default_factory=list)
    optimized_svg: str = ""
    errors: dict[str, str] = Field(default_factory=dict)
    processing_time_ms: float = 0.0
