"""Minimal CSS scanning shared by the style resolver, keyframes and filter parsing.

Brace- and parenthesis-depth aware so nested blocks (``@keyframes``, ``@media``)
and nested functions (``drop-shadow(... rgba(0,0,0,.5))``) stay intact.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_FUNCTION_NAME_RE = re.compile(r"([A-Za-z-][\w-]*)\s*\(")


def strip_comments(text: str) -> str:
    return _COMMENT_RE.sub("", text)


def iter_blocks(text: str) -> Iterator[tuple[str, str]]:
    """Yield (prelude, body) for every top-level ``prelude { body }`` block."""
    depth = 0
    prelude_start = 0
    body_start = 0
    for i, ch in enumerate(text):
        if ch == "{":
            if depth == 0:
                body_start = i + 1
            depth += 1
        elif ch == "}":
            if depth == 0:
                # Unbalanced close brace: skip it
                prelude_start = i + 1
                continue
            depth -= 1
            if depth == 0:
                prelude = text[prelude_start:body_start - 1]
                # A prelude may carry leftovers such as "@import x;" before it
                prelude = prelude.rsplit(";", 1)[-1].strip()
                yield prelude, text[body_start:i]
                prelude_start = i + 1


def parse_declarations(text: str | None) -> dict[str, str]:
    """Parse ``prop: value; ...`` into a dict (later declarations win)."""
    decls: dict[str, str] = {}
    if not text:
        return decls
    for part in split_top_level(text, ";"):
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip()
        if prop and value:
            decls[prop] = value
    return decls


def split_top_level(text: str, sep: str) -> list[str]:
    """Split on ``sep`` outside of parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def iter_functions(text: str) -> Iterator[tuple[str, str]]:
    """Yield (name, arguments) for each ``name(arguments)`` call, in order."""
    pos = 0
    while True:
        match = _FUNCTION_NAME_RE.search(text, pos)
        if not match:
            return
        depth = 0
        i = match.end()
        args_start = i
        while i < len(text):
            ch = text[i]
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            i += 1
        yield match.group(1), text[args_start:i].strip()
        pos = i + 1
