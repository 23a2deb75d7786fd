from __future__ import annotations

from typing import Optional


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` substring of ``text``.

    Model output may wrap the object in commentary or code fences, so the scan
    starts at the first ``{`` and tracks nesting depth until it returns to zero.
    Braces inside JSON string literals (including escaped quotes) are ignored.
    If an opening brace never closes, scanning resumes at the next ``{`` after it.
    """
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return None


def _matching_brace(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return idx
    return None
