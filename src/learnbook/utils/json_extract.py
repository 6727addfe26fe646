"""Best-effort JSON extraction from free-form model output.

Models asked for "ONLY a JSON array" still wrap it in prose, code fences
or reasoning blocks. These helpers recover the payload without raising:
callers get the parsed value or None and decide on a fallback.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable

# Patterns for removing thinking/reasoning blocks from LLM output
THINK_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<thinking>.*?</thinking>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]

CODE_FENCE_OPEN = re.compile(r"```json\s*", re.IGNORECASE)
CODE_FENCE = re.compile(r"```\s*")

ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")
OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")

TRAILING_COMMA_ARRAY = re.compile(r",\s*]")
TRAILING_COMMA_OBJECT = re.compile(r",\s*}")


def strip_think(text: str) -> str:
    """Remove thinking/reasoning tags from LLM output."""
    result = text
    for pattern in THINK_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def _clean(text: str) -> str:
    cleaned = strip_think(text or "")
    cleaned = CODE_FENCE_OPEN.sub("", cleaned)
    cleaned = CODE_FENCE.sub("", cleaned)
    return cleaned.strip()


def _fix_trailing_commas(text: str) -> str:
    text = TRAILING_COMMA_ARRAY.sub("]", text)
    return TRAILING_COMMA_OBJECT.sub("}", text)


def _slice(text: str, open_char: str, close_char: str) -> str | None:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _match(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0) if match else None


def extract_json_array(text: str) -> list[Any] | None:
    """Extract the first non-empty JSON array from model text.

    Strategies, in order:
    1. Direct parse of the cleaned text
    2. Regex for an array of objects
    3. Slice from first '[' to last ']'
    4. Same slice with trailing commas removed

    Returns:
        Parsed non-empty list, or None if every strategy fails
    """
    cleaned = _clean(text)

    strategies: list[Callable[[], str | None]] = [
        lambda: cleaned,
        lambda: _match(ARRAY_OF_OBJECTS, cleaned),
        lambda: _slice(cleaned, "[", "]"),
        lambda: _fix_trailing_commas(_slice(cleaned, "[", "]") or ""),
    ]

    for strategy in strategies:
        candidate = strategy()
        if not candidate:
            continue
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, list) and result:
            return result

    return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Extract a JSON object from model text.

    Tries a direct parse, then the greedy ``{...}`` span, then the same
    span with trailing commas removed.

    Returns:
        Parsed dict, or None
    """
    cleaned = _clean(text)

    span = _match(OBJECT_SPAN, cleaned)
    candidates = [cleaned, span, _fix_trailing_commas(span) if span else None]

    for candidate in candidates:
        if not candidate:
            continue
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result

    return None
