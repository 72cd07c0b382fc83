"""Deterministic fallback classification used whenever AI mapping is skipped or fails."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence, Tuple

from .merge import compute_stats
from .models import (
    HoverGradient,
    IconColorSignal,
    MappingEntry,
    MappingResult,
    MappingSession,
    SelectorSignal,
    VariableSignal,
    primary_token,
)
from .palette import InvalidColor, is_accent, nearest_token, parse_color

# Ordered: the first rule whose keyword occurs in the name wins.
PURPOSE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("background", ("bg", "background", "surface", "base")),
    ("text", ("text", "font", "fg")),
    ("accent", ("accent", "primary", "link", "button")),
    ("border", ("border", "outline", "divider")),
    ("hover", ("hover", "focus", "active")),
)

HIGH_FREQUENCY = 5
CRITICAL_FREQUENCY = 10

BORDER_TOKEN = "overlay0"
GRADIENT_ANGLE = 135.0

_ACCENT_BACKGROUND_CATEGORIES = frozenset({"button", "badge"})
_SURFACE_CATEGORIES = frozenset({"card", "modal"})


def infer_purpose(name: str) -> str:
    """Classify a variable or selector name into a coarse purpose."""
    normalized = name.lower()
    for purpose, keywords in PURPOSE_RULES:
        if any(keyword in normalized for keyword in keywords):
            return purpose
    return "other"


def infer_priority(signal: VariableSignal) -> str:
    if signal.scope == "root" and signal.frequency > CRITICAL_FREQUENCY:
        return "critical"
    if signal.scope == "root":
        return "high"
    if signal.frequency > HIGH_FREQUENCY:
        return "medium"
    return "low"


def surface_token(mode: str) -> str:
    return "surface0" if mode == "dark" else "surface2"


def token_for_purpose(purpose: str, frequency: int, session: MappingSession) -> str:
    if purpose == "background":
        if frequency > HIGH_FREQUENCY:
            return "base"
        return surface_token(session.effective_mode)
    if purpose == "text":
        return "text" if frequency > HIGH_FREQUENCY else "subtext0"
    if purpose == "border":
        return BORDER_TOKEN
    # accent, hover and anything unrecognised land on the main accent.
    return session.main_accent


def classify_variable(signal: VariableSignal, session: MappingSession) -> MappingEntry:
    purpose = infer_purpose(signal.name)
    token = token_for_purpose(purpose, signal.frequency, session)
    return MappingEntry(
        source_key=signal.key,
        token=token,
        purpose=purpose,
        reason=f"Fallback mapping ({purpose})",
        confidence=0.3 if purpose == "other" else 0.6,
        is_accent=is_accent(token),
        priority=infer_priority(signal),
    )


def classify_icon(signal: IconColorSignal, session: MappingSession) -> MappingEntry:
    try:
        rgb = parse_color(signal.value)
    except InvalidColor:
        token = session.main_accent
        confidence = 0.2
        reason = f"Fallback icon mapping for {signal.selector} (unparsed color)"
    else:
        token = nearest_token(rgb, session.palette)
        confidence = 0.5
        reason = f"Fallback icon mapping for {signal.selector}"
    return MappingEntry(
        source_key=signal.key,
        token=token,
        purpose="icon",
        reason=reason,
        confidence=confidence,
        is_accent=is_accent(token),
        priority="medium",
    )


def selector_properties(signal: SelectorSignal, session: MappingSession) -> Dict[str, str]:
    """Decision table from selector flags and category to a property/token map."""
    mode = session.effective_mode
    main = session.main_accent
    text_color = "text" if signal.category == "text" else "subtext0"
    styles = signal.current_styles

    if signal.is_text_only:
        return {"color": text_color}

    props: Dict[str, str] = {}
    if styles.get("color"):
        props["color"] = text_color

    if signal.has_visible_background or styles.get("backgroundColor"):
        if signal.is_interactive or signal.category in _ACCENT_BACKGROUND_CATEGORIES:
            props["backgroundColor"] = main
            props["color"] = text_color
        elif signal.category in _SURFACE_CATEGORIES:
            props["backgroundColor"] = surface_token(mode)

    if signal.has_border or styles.get("borderColor"):
        props["borderColor"] = main if signal.is_interactive else BORDER_TOKEN

    if styles.get("fill"):
        props["fill"] = main
    if styles.get("stroke"):
        props["stroke"] = main

    if not props:
        props["color"] = text_color
    return props


def fallback_gradient(signal: SelectorSignal, session: MappingSession) -> Optional[HoverGradient]:
    if not signal.is_interactive:
        return None
    return HoverGradient(
        angle=GRADIENT_ANGLE,
        main_color=session.main_accent,
        bi_accent=session.accent_set.bi_accent1,
        opacity=0.18 if signal.has_visible_background else 0.12,
    )


def classify_selector(signal: SelectorSignal, session: MappingSession) -> MappingEntry:
    properties = selector_properties(signal, session)
    token = primary_token(properties)
    if signal.frequency > CRITICAL_FREQUENCY:
        priority = "high"
    elif signal.frequency > HIGH_FREQUENCY:
        priority = "medium"
    else:
        priority = "low"
    return MappingEntry(
        source_key=signal.key,
        token=token,
        purpose=signal.category,
        reason=f"Fallback mapping for {signal.selector} ({signal.category})",
        confidence=0.5,
        is_accent=any(is_accent(value) for value in properties.values()),
        priority=priority,
        properties=properties,
        hover_gradient=fallback_gradient(signal, session),
    )


_CLASSIFIERS: Dict[str, Callable[[object, MappingSession], MappingEntry]] = {
    "variables": classify_variable,  # type: ignore[dict-item]
    "icons": classify_icon,  # type: ignore[dict-item]
    "selectors": classify_selector,  # type: ignore[dict-item]
}


def classify_entries(
    category: str,
    signals: Sequence[object],
    session: MappingSession,
) -> Tuple[MappingEntry, ...]:
    """Return exactly one entry per signal, in input order."""
    try:
        classifier = _CLASSIFIERS[category]
    except KeyError:
        raise ValueError(f"Unknown mapping category: {category!r}") from None
    return tuple(classifier(signal, session) for signal in signals)


def build_fallback_result(
    category: str,
    signals: Sequence[object],
    session: MappingSession,
    *,
    degraded: bool = False,
    reason: str | None = None,
) -> MappingResult:
    """Classify ``signals`` deterministically and wrap them in a result."""
    entries = classify_entries(category, signals, session)
    return MappingResult(
        category=category,
        entries=entries,
        stats=compute_stats(entries, session.accent_set, total=len(signals)),
        degraded=degraded,
        degraded_reason=reason if degraded else None,
    )


__all__ = [
    "PURPOSE_RULES",
    "build_fallback_result",
    "classify_entries",
    "classify_icon",
    "classify_selector",
    "classify_variable",
    "infer_priority",
    "infer_purpose",
    "selector_properties",
]
