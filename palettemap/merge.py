"""Validate AI suggestions and merge them over the deterministic fallback entries."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .logging import get_logger
from .models import (
    COLOR_PROPERTIES,
    PRIORITIES,
    HoverGradient,
    MappingEntry,
    MappingResult,
    MappingStats,
    primary_token,
)
from .palette import AccentSet, Palette, is_accent, is_palette_token, normalize_accent, normalize_token

KEY_ALIASES: Tuple[str, ...] = ("key", "variable", "originalColor", "selector")
TOKEN_ALIASES: Tuple[str, ...] = ("token", "catppuccinColor", "catppuccin", "color")

AI_DEFAULT_CONFIDENCE = 0.8
DEFAULT_GRADIENT_ANGLE = 135.0
DEFAULT_GRADIENT_OPACITY = 0.12

logger = get_logger("merge")


@dataclass(frozen=True)
class Suggestion:
    """A validated AI mapping: every token in it is a palette member."""

    key: str
    token: Optional[str] = None
    reason: str = ""
    priority: Optional[str] = None
    confidence: Optional[float] = None
    properties: Mapping[str, str] = field(default_factory=dict, hash=False)
    hover_gradient: Optional[HoverGradient] = None
    important: Optional[bool] = None


@dataclass(frozen=True)
class SuggestionBatch:
    """Suggestions that passed validation plus the number that were discarded."""

    suggestions: Tuple[Suggestion, ...] = ()
    discarded: int = 0


@dataclass
class ValidationIssue:
    """Represents a single problem found in a finished mapping result."""

    key: str
    severity: str
    detail: str


def compute_stats(
    entries: Sequence[MappingEntry],
    accent_set: AccentSet,
    *,
    total: int,
    ai_overrides: int = 0,
    discarded: int = 0,
) -> MappingStats:
    """Count accent usage across every token the entries assign."""
    main = bi1 = bi2 = 0
    mapped = 0
    for entry in entries:
        if is_palette_token(entry.token):
            mapped += 1
        for token in entry.tokens():
            if token == accent_set.main:
                main += 1
            elif token == accent_set.bi_accent1:
                bi1 += 1
            elif token == accent_set.bi_accent2:
                bi2 += 1
    return MappingStats(
        total=total,
        mapped=mapped,
        main_accent=main,
        bi_accent1=bi1,
        bi_accent2=bi2,
        ai_overrides=ai_overrides,
        discarded=discarded,
    )


def parse_suggestions(payload: Mapping[str, Any], category: str) -> SuggestionBatch:
    """Turn the extracted ``{"mappings": ...}`` object into validated suggestions."""
    raw = payload.get("mappings") if isinstance(payload, Mapping) else None
    suggestions: List[Suggestion] = []
    discarded = 0
    for item in _iter_items(raw):
        suggestion = _parse_item(item, category)
        if suggestion is None:
            discarded += 1
            continue
        suggestions.append(suggestion)
    return SuggestionBatch(suggestions=tuple(suggestions), discarded=discarded)


def _iter_items(raw: Any) -> Iterable[Any]:
    if isinstance(raw, list):
        yield from raw
    elif isinstance(raw, Mapping):
        # {"--fg": "text"} or {"--fg": {"token": "text", "reason": "..."}}
        for key, value in raw.items():
            if isinstance(value, Mapping):
                yield {"key": key, **value}
            else:
                yield {"key": key, "token": value}


def _parse_item(item: Any, category: str) -> Optional[Suggestion]:
    if not isinstance(item, Mapping):
        logger.debug("Discarding non-object suggestion: %r", item)
        return None
    key = _first_string(item, KEY_ALIASES)
    if key is None:
        logger.debug("Discarding suggestion without a key: %r", item)
        return None

    common: Dict[str, Any] = {
        "key": key,
        "reason": _as_reason(item.get("reason", item.get("reasoning"))),
        "priority": _as_priority(item.get("priority")),
        "confidence": _as_confidence(item.get("confidence")),
        "important": item["important"] if isinstance(item.get("important"), bool) else None,
    }

    if category == "selectors":
        properties = _parse_properties(item, key)
        if not properties:
            logger.debug("TokenInvalid: no usable property tokens for %s", key)
            return None
        return Suggestion(
            token=primary_token(properties),
            properties=properties,
            hover_gradient=_parse_gradient(item.get("hoverGradient")),
            **common,
        )

    raw_token = next((item[alias] for alias in TOKEN_ALIASES if item.get(alias) is not None), None)
    token = normalize_token(raw_token)
    if token is None:
        logger.debug("TokenInvalid: %r for %s", raw_token, key)
        return None
    return Suggestion(token=token, **common)


def _parse_properties(item: Mapping[str, Any], key: str) -> Dict[str, str]:
    source = item.get("properties")
    if not isinstance(source, Mapping):
        source = item.get("colors")
    if not isinstance(source, Mapping):
        source = item
    properties: Dict[str, str] = {}
    for name in COLOR_PROPERTIES:
        raw = source.get(name)
        if raw is None:
            continue
        token = normalize_token(raw)
        if token is None:
            logger.debug("TokenInvalid: %s=%r for %s", name, raw, key)
            continue
        properties[name] = token
    return properties


def _parse_gradient(raw: Any) -> Optional[HoverGradient]:
    if not isinstance(raw, Mapping):
        return None
    main = normalize_accent(raw.get("mainColor"))
    bi = normalize_accent(raw.get("biAccent", raw.get("biColor")))
    if main is None or bi is None:
        return None
    angle = _as_finite(raw.get("angle"), DEFAULT_GRADIENT_ANGLE)
    opacity = _as_finite(raw.get("opacity"), DEFAULT_GRADIENT_OPACITY)
    return HoverGradient(angle=angle % 360.0, main_color=main, bi_accent=bi, opacity=min(max(opacity, 0.0), 1.0))


def _as_finite(value: Any, default: float) -> float:
    # JSON from models may carry NaN or Infinity literals.
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _first_string(item: Mapping[str, Any], aliases: Sequence[str]) -> Optional[str]:
    for alias in aliases:
        value = item.get(alias)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _as_reason(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_priority(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    return lowered if lowered in PRIORITIES else None


def _as_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return min(max(float(value), 0.0), 1.0)


def _lookup_key(category: str, key: str) -> str:
    # Icon keys are raw color literals; the model may echo them in another case.
    return key.lower() if category == "icons" else key


def merge_entries(
    category: str,
    fallback_entries: Sequence[MappingEntry],
    suggestions: Sequence[Suggestion],
) -> Tuple[Tuple[MappingEntry, ...], int]:
    """Overlay ``suggestions`` onto ``fallback_entries``; returns entries and override count.

    The result always has one entry per fallback entry, in the same order. The first
    suggestion for a key wins; suggestions for unknown keys are ignored.
    """
    by_key: Dict[str, Suggestion] = {}
    for suggestion in suggestions:
        by_key.setdefault(_lookup_key(category, suggestion.key), suggestion)

    merged: List[MappingEntry] = []
    overrides = 0
    for entry in fallback_entries:
        suggestion = by_key.get(_lookup_key(category, entry.source_key))
        if suggestion is None:
            merged.append(entry)
            continue
        merged.append(_apply(entry, suggestion))
        overrides += 1
    return tuple(merged), overrides


def _apply(entry: MappingEntry, suggestion: Suggestion) -> MappingEntry:
    confidence = suggestion.confidence if suggestion.confidence is not None else AI_DEFAULT_CONFIDENCE
    common = {
        "reason": suggestion.reason or entry.reason,
        "priority": suggestion.priority or entry.priority,
        "confidence": confidence,
        "source": "ai",
    }
    if not suggestion.properties:
        token = suggestion.token or entry.token
        return replace(entry, token=token, is_accent=is_accent(token), **common)

    properties = {**entry.properties, **suggestion.properties}
    gradient = suggestion.hover_gradient or entry.hover_gradient
    return replace(
        entry,
        token=primary_token(properties),
        properties=properties,
        hover_gradient=gradient,
        important=entry.important if suggestion.important is None else suggestion.important,
        is_accent=any(is_accent(value) for value in properties.values()),
        **common,
    )


def merge_result(
    fallback: MappingResult,
    batch: SuggestionBatch,
    accent_set: AccentSet,
) -> MappingResult:
    """Merge a suggestion batch into a fallback result and recompute its stats."""
    entries, overrides = merge_entries(fallback.category, fallback.entries, batch.suggestions)
    return MappingResult(
        category=fallback.category,
        entries=entries,
        stats=compute_stats(
            entries,
            accent_set,
            total=fallback.stats.total,
            ai_overrides=overrides,
            discarded=batch.discarded,
        ),
    )


def validate_result(result: MappingResult, palette: Palette | None = None) -> List[ValidationIssue]:
    """Re-check a finished result; invalid tokens are errors, duplicate selectors warnings."""
    issues: List[ValidationIssue] = []
    seen: Dict[str, int] = {}
    for entry in result.entries:
        for token in entry.tokens():
            legal = token in palette if palette is not None else is_palette_token(token)
            if not legal:
                issues.append(ValidationIssue(entry.source_key, "error", f"'{token}' is not a palette token"))
        gradient = entry.hover_gradient
        if gradient is not None and not (is_accent(gradient.main_color) and is_accent(gradient.bi_accent)):
            issues.append(ValidationIssue(entry.source_key, "error", "hover gradient uses a non-accent color"))
        if not 0.0 <= entry.confidence <= 1.0:
            issues.append(ValidationIssue(entry.source_key, "error", f"confidence {entry.confidence} out of range"))
        seen[entry.source_key] = seen.get(entry.source_key, 0) + 1

    if result.category == "selectors":
        for key, count in seen.items():
            if count > 1:
                issues.append(ValidationIssue(key, "warning", f"selector mapped {count} times"))
    return issues


__all__ = [
    "AI_DEFAULT_CONFIDENCE",
    "KEY_ALIASES",
    "Suggestion",
    "SuggestionBatch",
    "TOKEN_ALIASES",
    "ValidationIssue",
    "compute_stats",
    "merge_entries",
    "merge_result",
    "parse_suggestions",
    "validate_result",
]
