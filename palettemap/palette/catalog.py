"""Catppuccin target palettes: the fixed token catalog every mapping resolves to."""

# Catppuccin palette values (c) Catppuccin community, MIT licensed.

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from .color_math import RGB, hex_to_rgb, hue_of, is_dark

FLAVORS: Tuple[str, ...] = ("latte", "frappe", "macchiato", "mocha")

NEUTRAL_TOKENS: Tuple[str, ...] = (
    "base",
    "mantle",
    "crust",
    "surface0",
    "surface1",
    "surface2",
    "overlay0",
    "overlay1",
    "overlay2",
    "subtext0",
    "subtext1",
    "text",
)

ACCENT_TOKENS: Tuple[str, ...] = (
    "rosewater",
    "flamingo",
    "pink",
    "mauve",
    "red",
    "maroon",
    "peach",
    "yellow",
    "green",
    "teal",
    "sky",
    "sapphire",
    "blue",
    "lavender",
)

COLOR_TOKENS: Tuple[str, ...] = NEUTRAL_TOKENS + ACCENT_TOKENS

_ACCENT_SET = frozenset(ACCENT_TOKENS)
_TOKEN_SET = frozenset(COLOR_TOKENS)

_HEX_VALUES: Dict[str, Tuple[str, ...]] = {
    # Same order as COLOR_TOKENS.
    "latte": (
        "#eff1f5", "#e6e9ef", "#dce0e8", "#ccd0da", "#bcc0cc", "#acb0be",
        "#9ca0b0", "#8c8fa1", "#7c7f93", "#6c6f85", "#5c5f77", "#4c4f69",
        "#dc8a78", "#dd7878", "#ea76cb", "#8839ef", "#d20f39", "#e64553",
        "#fe640b", "#df8e1d", "#40a02b", "#179299", "#04a5e5", "#209fb5",
        "#1e66f5", "#7287fd",
    ),
    "frappe": (
        "#303446", "#292c3c", "#232634", "#414559", "#51576d", "#626880",
        "#737994", "#838ba7", "#949cbb", "#a5adce", "#b5bfe2", "#c6d0f5",
        "#f2d5cf", "#eebebe", "#f4b8e4", "#ca9ee6", "#e78284", "#ea999c",
        "#ef9f76", "#e5c890", "#a6d189", "#81c8be", "#99d1db", "#85c1dc",
        "#8caaee", "#babbf1",
    ),
    "macchiato": (
        "#24273a", "#1e2030", "#181926", "#363a4f", "#494d64", "#5b6078",
        "#6e738d", "#8087a2", "#939ab7", "#a5adcb", "#b8c0e0", "#cad3f5",
        "#f4dbd6", "#f0c6c6", "#f5bde6", "#c6a0f6", "#ed8796", "#ee99a0",
        "#f5a97f", "#eed49f", "#a6da95", "#8bd5ca", "#91d7e3", "#7dc4e4",
        "#8aadf4", "#b7bdf8",
    ),
    "mocha": (
        "#1e1e2e", "#181825", "#11111b", "#313244", "#45475a", "#585b70",
        "#6c7086", "#7f849c", "#9399b2", "#a6adc8", "#bac2de", "#cdd6f4",
        "#f5e0dc", "#f2cdcd", "#f5c2e7", "#cba6f7", "#f38ba8", "#eba0ac",
        "#fab387", "#f9e2af", "#a6e3a1", "#94e2d5", "#89dceb", "#74c7ec",
        "#89b4fa", "#b4befe",
    ),
}


class UnknownTokenError(ValueError):
    """Raised when a flavor or palette token name is not part of the catalog."""


@dataclass(frozen=True)
class Palette:
    """Hex values for every token of one flavor."""

    flavor: str
    colors: Mapping[str, str] = field(repr=False, compare=False)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token in self.colors

    def __iter__(self) -> Iterator[str]:
        return iter(COLOR_TOKENS)

    def hex(self, token: str) -> str:
        try:
            return self.colors[token]
        except KeyError:
            raise UnknownTokenError(f"Unknown palette token: {token!r}") from None

    def rgb(self, token: str) -> RGB:
        return hex_to_rgb(self.hex(token))

    def hue(self, token: str) -> float:
        return hue_of(self.rgb(token))

    @property
    def is_dark(self) -> bool:
        return is_dark(self.rgb("base"))


def _build_palettes() -> Mapping[str, Palette]:
    palettes = {}
    for flavor, values in _HEX_VALUES.items():
        colors = MappingProxyType(dict(zip(COLOR_TOKENS, values)))
        palettes[flavor] = Palette(flavor=flavor, colors=colors)
    return MappingProxyType(palettes)


PALETTES: Mapping[str, Palette] = _build_palettes()


def get_palette(flavor: str) -> Palette:
    """Return the palette for ``flavor`` (case-insensitive)."""
    key = normalize_flavor(flavor)
    return PALETTES[key]


def normalize_flavor(flavor: str) -> str:
    key = flavor.strip().lower() if isinstance(flavor, str) else ""
    if key not in PALETTES:
        raise UnknownTokenError(
            f"Unknown flavor {flavor!r}; expected one of {', '.join(FLAVORS)}"
        )
    return key


def normalize_token(value: object) -> str | None:
    """Return the canonical token for ``value`` or ``None`` when it is not a palette member."""
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned if cleaned in _TOKEN_SET else None


def normalize_accent(value: object) -> str | None:
    token = normalize_token(value)
    return token if token in _ACCENT_SET else None


def is_palette_token(value: object) -> bool:
    return isinstance(value, str) and value in _TOKEN_SET


def is_accent(value: object) -> bool:
    return isinstance(value, str) and value in _ACCENT_SET


__all__ = [
    "ACCENT_TOKENS",
    "COLOR_TOKENS",
    "FLAVORS",
    "NEUTRAL_TOKENS",
    "PALETTES",
    "Palette",
    "UnknownTokenError",
    "get_palette",
    "is_accent",
    "is_palette_token",
    "normalize_accent",
    "normalize_flavor",
    "normalize_token",
]
