"""Decode JSON with comments and trailing commas (package.json, deno.jsonc, bun.lock)."""

from __future__ import annotations

import json
import re
from typing import Any

__all__ = ["strip_jsonc_comments", "loads"]

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_jsonc_comments(content: str) -> str:
    """Remove ``//`` and ``/* */`` comments that are not inside string literals."""

    out: list[str] = []
    i = 0
    length = len(content)
    in_string = False
    while i < length:
        char = content[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(content[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue
        if content.startswith("//", i):
            end = content.find("\n", i)
            i = length if end == -1 else end
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _strip_trailing_commas(content: str) -> str:
    # only applied outside strings: split on string literals and touch the gaps
    parts = re.split(r'("(?:\\.|[^"\\])*")', content)
    for index in range(0, len(parts), 2):
        parts[index] = _TRAILING_COMMA.sub(r"\1", parts[index])
    return "".join(parts)


def loads(content: str) -> Any:
    """Parse JSONC text. Raises :class:`json.JSONDecodeError` on invalid input."""

    if content.startswith("\ufeff"):
        content = content[1:]
    return json.loads(_strip_trailing_commas(strip_jsonc_comments(content)))
