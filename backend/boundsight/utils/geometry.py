"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def as_points(points) -> NDArray[np.float64]:
    """Coerce a sequence of (x, y) pairs into an Nx2 float array."""
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2))
    return arr.reshape(-1, 2)


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def apply_affine(
    points: NDArray[np.float64],
    a: float, b: float, c: float, d: float, e: float, f: float,
) -> NDArray[np.float64]:
    """Map every row through x' = a*x + c*y + e, y' = b*x + d*y + f."""
    x = points[:, 0]
    y = points[:, 1]
    return np.column_stack((a * x + c * y + e, b * x + d * y + f))


def parse_number_list(text: str | None) -> list[float]:
    """Split on commas/whitespace and keep the tokens that parse as floats."""
    if not text:
        return []
    out: list[float] = []
    for tok in text.replace(",", " ").split():
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out


def to_float(value: str | None, default: float = 0.0) -> float:
    """Parse a float, returning ``default`` for missing or malformed input."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
