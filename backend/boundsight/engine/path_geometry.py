"""Path geometry — path-data parsing and near-exact bounding boxes.

``parse_path_data`` tokenizes path text into commands and drops incomplete
argument groups. The commands are written back out as clean path data and
handed to svgpathtools for the segments: lines and Béziers contribute their
exact boxes, elliptical arcs the full rotated ellipse around their center.

Malformed or empty input never raises: it yields no commands and zero bounds.
"""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass

import numpy as np
from svgpathtools import Arc, Path, parse_path

from boundsight.engine.context import PathBounds
from boundsight.utils.geometry import as_points, bbox

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"([MmLlHhVvCcSsQqTtAaZz])|(-?[0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)")


class PathCommandKind(str, enum.Enum):
    MOVE_TO = "M"
    LINE_TO = "L"
    H_LINE_TO = "H"
    V_LINE_TO = "V"
    CUBIC_BEZIER = "C"
    SMOOTH_CUBIC_BEZIER = "S"
    QUADRATIC_BEZIER = "Q"
    SMOOTH_QUADRATIC_BEZIER = "T"
    ARC = "A"
    CLOSE_PATH = "Z"


_ARG_COUNTS = {
    PathCommandKind.MOVE_TO: 2,
    PathCommandKind.LINE_TO: 2,
    PathCommandKind.SMOOTH_QUADRATIC_BEZIER: 2,
    PathCommandKind.H_LINE_TO: 1,
    PathCommandKind.V_LINE_TO: 1,
    PathCommandKind.CUBIC_BEZIER: 6,
    PathCommandKind.SMOOTH_CUBIC_BEZIER: 4,
    PathCommandKind.QUADRATIC_BEZIER: 4,
    PathCommandKind.ARC: 7,
    PathCommandKind.CLOSE_PATH: 0,
}


@dataclass(frozen=True)
class PathCommand:
    kind: PathCommandKind
    args: tuple[float, ...]
    is_relative: bool = False


def parse_path_data(text: str | None) -> list[PathCommand]:
    """Tokenize path data into commands.

    Extra argument groups repeat the previous command; extra groups after a
    moveto become linetos. Incomplete groups and stray numbers are dropped.
    """
    if not text:
        return []

    tokens = [(m.group(1), m.group(2)) for m in _TOKEN_RE.finditer(text)]
    commands: list[PathCommand] = []
    i = 0
    while i < len(tokens):
        letter, _ = tokens[i]
        i += 1
        if not letter:
            continue

        kind = PathCommandKind(letter.upper())
        relative = letter.islower()
        count = _ARG_COUNTS[kind]
        if count == 0:
            commands.append(PathCommand(kind, (), relative))
            continue

        repeat_kind = PathCommandKind.LINE_TO if kind is PathCommandKind.MOVE_TO else kind
        first = True
        while i < len(tokens) and not tokens[i][0]:
            group: list[float] = []
            while len(group) < count and i < len(tokens) and not tokens[i][0]:
                group.append(float(tokens[i][1]))
                i += 1
            if len(group) < count:
                break
            commands.append(PathCommand(kind if first else repeat_kind, tuple(group), relative))
            first = False
    return commands


def to_path_data(commands: list[PathCommand]) -> str:
    """Path data with one explicit letter per command and integer arc flags."""
    parts = []
    for cmd in commands:
        letter = cmd.kind.value.lower() if cmd.is_relative else cmd.kind.value
        args = [repr(v) for v in cmd.args]
        if cmd.kind is PathCommandKind.ARC:
            args[3:5] = [str(int(bool(v))) for v in cmd.args[3:5]]
        parts.append(" ".join([letter, *args]))
    return " ".join(parts)


def _drawable(commands: list[PathCommand]) -> list[PathCommand]:
    # A closepath before anything is drawn closes nothing
    out = []
    drawn = False
    for cmd in commands:
        if cmd.kind is PathCommandKind.MOVE_TO:
            drawn = False
        elif cmd.kind is PathCommandKind.CLOSE_PATH:
            if not drawn:
                continue
        elif cmd.kind is PathCommandKind.ARC and cmd.is_relative and cmd.args[5:] == (0.0, 0.0):
            # An arc ending on its own start point is omitted
            continue
        else:
            drawn = True
        out.append(cmd)
    return out


def path_segments(text: str | None) -> Path:
    """svgpathtools segments of path data; empty when nothing can be drawn."""
    commands = _drawable(parse_path_data(text))
    if not commands or commands[0].kind is not PathCommandKind.MOVE_TO:
        return Path()
    try:
        return parse_path(to_path_data(commands))
    except Exception as e:
        logger.warning("Failed to parse path: %s", e)
        return Path()


def segment_extent(segment) -> tuple[float, float, float, float]:
    """(xmin, xmax, ymin, ymax) of one segment.

    Arcs are bounded by their whole ellipse, which also holds both endpoints.
    """
    if isinstance(segment, Arc):
        rx, ry = segment.radius.real, segment.radius.imag
        phi = math.radians(segment.rotation)
        half_w = math.hypot(rx * math.cos(phi), ry * math.sin(phi))
        half_h = math.hypot(rx * math.sin(phi), ry * math.cos(phi))
        c = segment.center
        return (c.real - half_w, c.real + half_w, c.imag - half_h, c.imag + half_h)
    return segment.bbox()


def path_bounds(text: str | None) -> PathBounds:
    segments = path_segments(text)
    if not segments:
        return PathBounds()
    extents = np.array([segment_extent(seg) for seg in segments], dtype=np.float64)
    return PathBounds(
        float(extents[:, 0].min()),
        float(extents[:, 1].max()),
        float(extents[:, 2].min()),
        float(extents[:, 3].max()),
    )


def path_vertices(text: str | None) -> list[tuple[float, float]]:
    """Start of every subpath and end of every segment, in drawing order."""
    vertices: list[tuple[float, float]] = []
    for segment in path_segments(text):
        start = (segment.start.real, segment.start.imag)
        if not vertices or vertices[-1] != start:
            vertices.append(start)
        vertices.append((segment.end.real, segment.end.imag))
    return vertices


def _bounds_of(points: list[tuple[float, float]]) -> PathBounds:
    if not points:
        return PathBounds()
    xmin, ymin, xmax, ymax = bbox(as_points(points))
    return PathBounds(xmin, xmax, ymin, ymax)


def parse_coordinate_pairs(text: str | None, pair_sep: str = ";") -> list[tuple[float, float]]:
    """Parse ``x,y;x,y`` (or whitespace-separated pairs). Short pairs are skipped."""
    if not text:
        return []
    points = []
    for chunk in text.split(pair_sep):
        nums = [tok for tok in re.split(r"[,\s]+", chunk.strip()) if tok]
        if len(nums) < 2:
            continue
        try:
            points.append((float(nums[0]), float(nums[1])))
        except ValueError:
            continue
    return points


def motion_values_bounds(text: str | None) -> PathBounds:
    """Bounds of animateMotion ``values``: a piecewise-linear list of points."""
    return _bounds_of(parse_coordinate_pairs(text))


def points_attribute(text: str | None) -> list[tuple[float, float]]:
    """Parse a polyline/polygon ``points`` attribute (flat number list)."""
    if not text:
        return []
    nums = []
    for tok in re.split(r"[,\s]+", text.strip()):
        try:
            nums.append(float(tok))
        except ValueError:
            continue
    return [(nums[i], nums[i + 1]) for i in range(0, len(nums) - 1, 2)]
