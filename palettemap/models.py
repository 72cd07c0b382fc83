"""Core data models shared across palettemap components."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .palette import AccentSet, Palette, derive_accent_set, get_palette

CATEGORIES: Tuple[str, ...] = ("variables", "icons", "selectors")

COLOR_PROPERTIES: Tuple[str, ...] = (
    "color",
    "backgroundColor",
    "borderColor",
    "fill",
    "stroke",
)

PRIORITIES: Tuple[str, ...] = ("critical", "high", "medium", "low")


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class VariableSignal:
    """A CSS custom property discovered on the site."""

    name: str
    value: str
    computed_value: str = ""
    scope: str = "root"
    selector: str = ":root"
    frequency: int = 0
    usage: Tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.name

    @property
    def resolved_value(self) -> str:
        return self.computed_value or self.value


@dataclass(frozen=True)
class IconColorSignal:
    """One color used by an icon (fill, stroke or gradient stop)."""

    value: str
    selector: str = "svg"
    color_type: str = "fill"

    @property
    def key(self) -> str:
        return self.value


@dataclass(frozen=True)
class SelectorSignal:
    """A selector and its color-bearing properties."""

    selector: str
    category: str = "other"
    specificity: int = 0
    frequency: int = 0
    is_interactive: bool = False
    has_visible_background: bool = False
    has_border: bool = False
    is_text_only: bool = False
    current_styles: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "current_styles", _freeze(self.current_styles))

    @property
    def key(self) -> str:
        return self.selector


@dataclass(frozen=True)
class HoverGradient:
    """Gradient pairing the main accent with a bi-accent on hover."""

    angle: float
    main_color: str
    bi_accent: str
    opacity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "angle": self.angle,
            "mainColor": self.main_color,
            "biAccent": self.bi_accent,
            "opacity": self.opacity,
        }


@dataclass(frozen=True)
class MappingEntry:
    """Assignment of one signal onto a palette token."""

    source_key: str
    token: str
    purpose: str
    reason: str
    confidence: float
    is_accent: bool
    priority: str = "low"
    properties: Mapping[str, str] = field(default_factory=dict, hash=False)
    hover_gradient: Optional[HoverGradient] = None
    important: bool = False
    source: str = "fallback"

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", _freeze(self.properties))

    def tokens(self) -> Tuple[str, ...]:
        """All palette tokens this entry assigns, including gradient colors."""
        if not self.properties:
            values: Tuple[str, ...] = (self.token,)
        else:
            values = tuple(self.properties[name] for name in COLOR_PROPERTIES if name in self.properties)
        if self.hover_gradient is not None:
            values += (self.hover_gradient.main_color, self.hover_gradient.bi_accent)
        return values

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "key": self.source_key,
            "token": self.token,
            "purpose": self.purpose,
            "reason": self.reason,
            "confidence": self.confidence,
            "isAccent": self.is_accent,
            "priority": self.priority,
            "source": self.source,
        }
        if self.properties:
            payload["properties"] = dict(self.properties)
            payload["important"] = self.important
        if self.hover_gradient is not None:
            payload["hoverGradient"] = self.hover_gradient.to_dict()
        return payload


@dataclass(frozen=True)
class MappingStats:
    """Aggregate accent usage and coverage for one category."""

    total: int
    mapped: int
    main_accent: int = 0
    bi_accent1: int = 0
    bi_accent2: int = 0
    ai_overrides: int = 0
    discarded: int = 0

    @property
    def coverage(self) -> float:
        if self.total == 0:
            return 1.0
        return self.mapped / self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "mapped": self.mapped,
            "coverage": round(self.coverage, 4),
            "accentUsage": {
                "mainAccent": self.main_accent,
                "biAccent1": self.bi_accent1,
                "biAccent2": self.bi_accent2,
            },
            "aiOverrides": self.ai_overrides,
            "discarded": self.discarded,
        }


@dataclass(frozen=True)
class MappingResult:
    """Final, immutable mapping for one signal category."""

    category: str
    entries: Tuple[MappingEntry, ...]
    stats: MappingStats
    degraded: bool = False
    degraded_reason: Optional[str] = None

    def by_key(self) -> Dict[str, MappingEntry]:
        """First entry per source key."""
        lookup: Dict[str, MappingEntry] = {}
        for entry in self.entries:
            lookup.setdefault(entry.source_key, entry)
        return lookup

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "degraded": self.degraded,
            "degradedReason": self.degraded_reason,
            "entries": [entry.to_dict() for entry in self.entries],
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class MappingReport:
    """Per-category results plus the accent set handed to code generation."""

    accent_set: AccentSet
    results: Mapping[str, MappingResult]

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", _freeze(self.results))

    @property
    def degraded(self) -> bool:
        return any(result.degraded for result in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accentSet": self.accent_set.to_dict(),
            "degraded": self.degraded,
            "results": {name: result.to_dict() for name, result in self.results.items()},
        }


@dataclass(frozen=True)
class MappingSession:
    """Per-request parameters: flavor, main accent and detected site mode."""

    flavor: str
    main_accent: str
    mode: Optional[str] = None

    def __post_init__(self) -> None:
        accent_set = derive_accent_set(self.flavor, self.main_accent)
        object.__setattr__(self, "flavor", accent_set.flavor)
        object.__setattr__(self, "main_accent", accent_set.main)
        if self.mode is not None:
            mode = str(self.mode).strip().lower()
            if mode not in {"dark", "light"}:
                raise ValueError(f"Unknown mode {self.mode!r}; expected 'dark' or 'light'")
            object.__setattr__(self, "mode", mode)

    @property
    def palette(self) -> Palette:
        return get_palette(self.flavor)

    @property
    def accent_set(self) -> AccentSet:
        return derive_accent_set(self.flavor, self.main_accent)

    @property
    def effective_mode(self) -> str:
        if self.mode is not None:
            return self.mode
        return "dark" if self.palette.is_dark else "light"


# Order in which a property's token becomes the entry's headline token.
PRIMARY_PROPERTY_ORDER: Tuple[str, ...] = (
    "backgroundColor",
    "color",
    "borderColor",
    "fill",
    "stroke",
)


def primary_token(properties: Mapping[str, str]) -> str:
    for name in PRIMARY_PROPERTY_ORDER:
        if name in properties:
            return properties[name]
    raise ValueError("Selector mapping has no color properties")


__all__ = [
    "CATEGORIES",
    "COLOR_PROPERTIES",
    "HoverGradient",
    "IconColorSignal",
    "MappingEntry",
    "MappingReport",
    "MappingResult",
    "MappingSession",
    "MappingStats",
    "PRIMARY_PROPERTY_ORDER",
    "PRIORITIES",
    "SelectorSignal",
    "VariableSignal",
    "primary_token",
]
