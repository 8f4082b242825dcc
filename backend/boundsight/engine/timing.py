"""Keyframe and timing normalizer.

Turns an animation element's ``values`` / ``from`` / ``to`` / ``by``,
``keyTimes``, ``keySplines`` and ``calcMode`` into an ordered list of
``Keyframe``, and its ``dur`` / ``repeatCount`` / ``begin`` / ``end`` into an
``AnimationTiming``.

``calcMode="paced"`` uses the same even spacing as linear. Distance-based
pacing would need a value-space metric per attribute type, which is not modeled.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable

from boundsight.engine.context import (
    AnimationTiming,
    AttributeValue,
    Keyframe,
    MatrixValue,
    NormalizedValue,
    PathDataValue,
    RotateValue,
    ScaleValue,
    SkewXValue,
    SkewYValue,
    TranslateValue,
)
from boundsight.engine.path_geometry import path_bounds
from boundsight.utils.geometry import to_float

logger = logging.getLogger(__name__)

INDEFINITE = math.inf

# Anything that is not a plain offset is an event or syncbase reference
_SIMPLE_BEGIN_RE = re.compile(r"^-?\d*\.?\d+(s|ms)?$")
_CLOCK_RE = re.compile(r"^(?:(\d+):)?(\d+):(\d+(?:\.\d+)?)$")
_UNIT_SCALE_MS = {"h": 3_600_000.0, "min": 60_000.0, "s": 1000.0, "ms": 1.0, "": 1000.0}
_TIMECOUNT_RE = re.compile(r"^(-?\d*\.?\d+)(h|min|s|ms)?$")

AttrGetter = Callable[[str], "str | None"]


def parse_clock_value(text: str | None, default: float = 0.0) -> float:
    """Parse a SMIL clock value into milliseconds.

    Bare numbers are seconds. ``indefinite`` is infinite. Anything else
    returns ``default``.
    """
    if text is None:
        return default
    text = text.strip()
    if text == "indefinite":
        return INDEFINITE
    m = _TIMECOUNT_RE.match(text)
    if m:
        return float(m.group(1)) * _UNIT_SCALE_MS[m.group(2) or ""]
    m = _CLOCK_RE.match(text)
    if m:
        hours = float(m.group(1) or 0)
        return ((hours * 60 + float(m.group(2))) * 60 + float(m.group(3))) * 1000.0
    return default


def is_event_or_syncbase(begin: str) -> bool:
    """True when ``begin`` is not a simple offset such as ``2s`` or ``-500ms``."""
    first = begin.split(";")[0].strip()
    return not _SIMPLE_BEGIN_RE.match(first)


def parse_timing(get: AttrGetter) -> AnimationTiming:
    dur = get("dur") or "indefinite"
    repeat = get("repeatCount") or "1"
    begin = (get("begin") or "0s").strip()
    end = get("end")

    event_based = is_event_or_syncbase(begin)
    if event_based:
        # Conservatively assume the triggering event can fire at time zero
        logger.debug("begin=%r treated as starting at 0", begin)
        begin_ms = 0.0
    else:
        begin_ms = parse_clock_value(begin.split(";")[0], 0.0)

    if repeat.strip() == "indefinite":
        repeat_count = INDEFINITE
    else:
        repeat_count = to_float(repeat, 1.0)

    end_ms = parse_clock_value(end, INDEFINITE) if end else None
    if end_ms is not None and math.isinf(end_ms) and end.strip() != "indefinite":
        # Event/syncbase end: the animation may run to completion
        end_ms = None

    return AnimationTiming(
        duration=parse_clock_value(dur, INDEFINITE),
        repeat_count=repeat_count,
        begin_ms=begin_ms,
        is_event_or_syncbase_based=event_based,
        end_ms=end_ms,
        begin_raw=begin,
    )


def split_values(text: str | None) -> list[str]:
    if not text:
        return []
    return [v.strip() for v in text.split(";") if v.strip()]


def default_key_times(count: int, calc_mode: str = "linear") -> list[float]:
    """Evenly spaced times ``i/(n-1)``; paced falls back to the same spacing."""
    if count <= 1:
        return [0.0]
    return [i / (count - 1) for i in range(count)]


def parse_key_times(text: str | None, count: int) -> list[float] | None:
    """Explicit ``keyTimes`` when they parse and match the value count."""
    if not text:
        return None
    times = []
    for part in text.split(";"):
        part = part.strip()
        if not part:
            continue
        try:
            times.append(float(part))
        except ValueError:
            return None
    if len(times) != count:
        logger.debug("keyTimes has %d entries for %d values, using defaults", len(times), count)
        return None
    return times


# ── Value arithmetic for from/by ──────────────────────────────────────────


def zero_value(like: NormalizedValue) -> NormalizedValue:
    """The neutral starting value of a by-only animation."""
    if isinstance(like, TranslateValue):
        return TranslateValue(0.0, 0.0)
    if isinstance(like, ScaleValue):
        return ScaleValue(1.0, 1.0)
    if isinstance(like, RotateValue):
        return RotateValue(0.0, like.cx, like.cy)
    if isinstance(like, SkewXValue):
        return SkewXValue(0.0)
    if isinstance(like, SkewYValue):
        return SkewYValue(0.0)
    if isinstance(like, MatrixValue):
        return MatrixValue()
    if isinstance(like, AttributeValue) and isinstance(like.value, float):
        return AttributeValue(like.name, 0.0)
    return like


def add_values(base: NormalizedValue, delta: NormalizedValue) -> NormalizedValue:
    """Componentwise ``base + delta`` for matching variants; otherwise ``delta``."""
    if isinstance(base, TranslateValue) and isinstance(delta, TranslateValue):
        return TranslateValue(base.x + delta.x, base.y + delta.y)
    if isinstance(base, ScaleValue) and isinstance(delta, ScaleValue):
        return ScaleValue(base.x + delta.x, base.y + delta.y)
    if isinstance(base, RotateValue) and isinstance(delta, RotateValue):
        return RotateValue(base.angle + delta.angle, delta.cx, delta.cy)
    if isinstance(base, SkewXValue) and isinstance(delta, SkewXValue):
        return SkewXValue(base.angle + delta.angle)
    if isinstance(base, SkewYValue) and isinstance(delta, SkewYValue):
        return SkewYValue(base.angle + delta.angle)
    if (
        isinstance(base, AttributeValue)
        and isinstance(delta, AttributeValue)
        and isinstance(base.value, float)
        and isinstance(delta.value, float)
    ):
        return AttributeValue(base.name, base.value + delta.value)
    return delta


def build_keyframes(get: AttrGetter, parse_value: Callable[[str], NormalizedValue]) -> list[Keyframe]:
    """Normalize an animation element's values into a timeline.

    ``values`` wins over ``from``/``to``/``by``. ``from``+``by`` ends at
    ``from + by``; ``by`` alone starts from the neutral value; ``to`` alone is a
    single keyframe at t=1 (the underlying value is the implicit start).
    """
    calc_mode = (get("calcMode") or "linear").strip()
    splines = [s.strip() for s in (get("keySplines") or "").split(";") if s.strip()]

    raw_values = split_values(get("values"))
    if raw_values:
        parsed = [parse_value(v) for v in raw_values]
        times = parse_key_times(get("keyTimes"), len(parsed)) or default_key_times(len(parsed), calc_mode)
        return [
            Keyframe(
                time=times[i],
                value=value,
                spline=splines[i] if i < len(splines) else None,
                calc_mode=calc_mode,
            )
            for i, value in enumerate(parsed)
        ]

    frm, to, by = get("from"), get("to"), get("by")
    spline = splines[0] if splines else None
    if frm is not None and to is not None:
        pairs = [(0.0, parse_value(frm)), (1.0, parse_value(to))]
    elif frm is not None and by is not None:
        start = parse_value(frm)
        pairs = [(0.0, start), (1.0, add_values(start, parse_value(by)))]
    elif by is not None:
        delta = parse_value(by)
        pairs = [(0.0, zero_value(delta)), (1.0, delta)]
    elif to is not None:
        pairs = [(1.0, parse_value(to))]
    else:
        return []
    return [Keyframe(time=t, value=v, spline=spline, calc_mode=calc_mode) for t, v in pairs]


_LEADING_NUMBER_RE = re.compile(r"^\s*([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)")


def leading_number(text: str | None) -> float | None:
    """Numeric prefix of ``text`` (``"12px"`` -> 12.0), or None."""
    if text is None:
        return None
    match = _LEADING_NUMBER_RE.match(text)
    return float(match.group(1)) if match else None


def parse_attribute_value(name: str, text: str) -> NormalizedValue:
    """``d`` values carry their path bounds; others are numeric when they can be."""
    if name == "d":
        return PathDataValue(text, path_bounds(text))
    number = leading_number(text)
    return AttributeValue(name, number if number is not None else text.strip())
