"""Engine configuration — tunables for bounds analysis."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AnalysisConfig:
    """Constants the analyzers share. Defaults reproduce the reference behaviour."""

    # Padding added on every side of the final content box
    buffer: float = 10.0

    # Fixed-angle animateMotion pad: |sin|*pad + |cos|*pad
    motion_rotation_pad: float = 5.0

    # Gaussian blur reaches ~3 standard deviations
    blur_extent_factor: float = 3.0

    # Filter region defaults, in percent of the element box
    filter_region_x: str = "-10%"
    filter_region_y: str = "-10%"
    filter_region_width: str = "120%"
    filter_region_height: str = "120%"

    # Pixel transform-origin values within this distance match a known quirk
    origin_quirk_tolerance: float = 1.0

    # Language assumed for <switch systemLanguage="...">
    system_language: str = "en"

    # Decimal places in the emitted viewBox text
    viewbox_precision: int = 2
