"""Recover a JSON payload from free-form model text.

Models wrap JSON in markdown fences, prepend prose, or trail explanations.
Nothing here raises: a payload that cannot be recovered yields ``None`` and
the pipeline continues with an empty transaction list.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from ..logging import get_logger

LOG = get_logger("response-extractor")

EXPECT_ARRAY = "array"
EXPECT_OBJECT = "object"

_BRACKETS = {
    EXPECT_ARRAY: ("[", "]"),
    EXPECT_OBJECT: ("{", "}"),
}

_LEADING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE_RE = re.compile(r"\r?\n?```\s*$")


def strip_code_fences(text: str) -> str:
    """Drop a leading ```lang opener and a trailing ``` closer, if present."""
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def _outer_slice(text: str, opener: str, closer: str) -> Optional[str]:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start : end + 1]


def _balanced_block(text: str, opener: str, closer: str) -> Optional[str]:
    """Return the first bracket-balanced block, ignoring brackets inside strings."""
    start = text.find(opener)
    if start == -1:
        return None
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
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def extract_json_payload(text: Optional[str], *, expect: str = EXPECT_ARRAY) -> Optional[Any]:
    """Return the parsed JSON value embedded in ``text`` or ``None``.

    The widest slice (first opener to last closer) is tried first; when that
    fails to parse, the first balanced block is tried before giving up.
    """
    if expect not in _BRACKETS:
        raise ValueError(f"expect must be one of {sorted(_BRACKETS)}, got {expect!r}")
    if not text or not isinstance(text, str):
        return None

    opener, closer = _BRACKETS[expect]
    cleaned = strip_code_fences(text)

    candidates = []
    outer = _outer_slice(cleaned, opener, closer)
    if outer is None:
        LOG.warning("No %s...%s block found in model output (first 200 chars: %r)", opener, closer, cleaned[:200])
        return None
    candidates.append(outer)
    balanced = _balanced_block(cleaned, opener, closer)
    if balanced and balanced != outer:
        candidates.append(balanced)

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            LOG.debug("JSON parse failed at pos %s: %s", exc.pos, exc.msg)
            continue

    LOG.error("Model output is not valid JSON; first 500 chars: %r", cleaned[:500])
    return None
