"""Recover one JSON object from model output polluted with reasoning tags or prose.

The scanner only balances ``{``/``}``; square brackets are not tracked, so a response
whose only payload is a top-level array is not recovered.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from .logging import get_logger

REASONING_TAGS = ("think", "thinking", "thought", "reasoning", "reflection")

_PAIRED_BLOCK_PATTERNS = tuple(
    re.compile(rf"<{tag}>[\s\S]*?</{tag}>", re.IGNORECASE) for tag in REASONING_TAGS
)
_ORPHAN_CLOSING_PATTERN = re.compile(
    r"^[\s\S]*?</(?:" + "|".join(REASONING_TAGS) + r")>", re.IGNORECASE
)

logger = get_logger("extraction")


class ExtractionFailure(str, Enum):
    """Terminal failure kinds of the extraction state machine."""

    NO_JSON_FOUND = "NoJsonFound"
    UNMATCHED_BRACES = "UnmatchedBraces"
    INVALID_JSON = "InvalidJson"
    INVALID_SHAPE = "InvalidShape"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Either a parsed object or the kind of failure that prevented parsing."""

    value: Optional[Dict[str, Any]] = None
    failure: Optional[ExtractionFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "ExtractionOutcome":
        return cls(value=value)

    @classmethod
    def failed(cls, kind: ExtractionFailure, detail: str = "") -> "ExtractionOutcome":
        return cls(failure=kind, detail=detail)


def strip_reasoning(text: str) -> str:
    """Remove paired reasoning blocks, then any prefix ending in an orphan closing tag."""
    cleaned = text
    for pattern in _PAIRED_BLOCK_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return _ORPHAN_CLOSING_PATTERN.sub("", cleaned, count=1)


def find_object_bounds(text: str) -> tuple[int, int] | ExtractionFailure:
    """Return inclusive ``(start, end)`` indices of the first balanced object."""
    start = text.find("{")
    if start == -1:
        return ExtractionFailure.NO_JSON_FOUND

    depth = 0
    in_string = False
    escape_next = False
    for index in range(start, len(text)):
        char = text[index]
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return (start, index)
    return ExtractionFailure.UNMATCHED_BRACES


def extract_json(text: str, required_keys: Sequence[str] = ()) -> ExtractionOutcome:
    """Run the extraction state machine over ``text``.

    When ``required_keys`` is given and the top-level object lacks any of them, a direct
    child object carrying all of them is unwrapped instead.
    """
    if not isinstance(text, str) or not text:
        return ExtractionOutcome.failed(ExtractionFailure.NO_JSON_FOUND, "empty response")

    cleaned = strip_reasoning(text)
    bounds = find_object_bounds(cleaned)
    if isinstance(bounds, ExtractionFailure):
        logger.debug("Extraction failed (%s) on %d chars", bounds.value, len(cleaned))
        return ExtractionOutcome.failed(bounds)

    start, end = bounds
    candidate = cleaned[start : end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.debug("Balanced slice is not valid JSON: %s", exc)
        return ExtractionOutcome.failed(ExtractionFailure.INVALID_JSON, str(exc))

    if not isinstance(parsed, dict):
        return ExtractionOutcome.failed(ExtractionFailure.INVALID_SHAPE, "top-level value is not an object")

    if _has_keys(parsed, required_keys):
        return ExtractionOutcome.success(parsed)

    for key, child in parsed.items():
        if isinstance(child, dict) and _has_keys(child, required_keys):
            logger.debug("Unwrapped payload nested under '%s'", key)
            return ExtractionOutcome.success(child)

    missing = [key for key in required_keys if key not in parsed]
    return ExtractionOutcome.failed(
        ExtractionFailure.INVALID_SHAPE,
        f"missing {', '.join(missing)}; keys found: {', '.join(map(str, parsed.keys()))}",
    )


def _has_keys(candidate: Dict[str, Any], required_keys: Sequence[str]) -> bool:
    return all(key in candidate for key in required_keys)


__all__ = [
    "ExtractionFailure",
    "ExtractionOutcome",
    "REASONING_TAGS",
    "extract_json",
    "find_object_bounds",
    "strip_reasoning",
]
