"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BoundsRequest(BaseModel):
    svg: str = Field(..., description="Raw SVG code")
    buffer: float | None = Field(
        default=None,
        ge=0,
        description="Padding around the content box (defaults to the configured buffer)",
    )
    include_elements: bool = Field(default=False, description="Return per-element bounds")
