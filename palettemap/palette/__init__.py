"""Catppuccin palette catalog, color math and accent derivation."""

from .accents import AccentSet, derive_accent_set, nearest_token
from .catalog import (
    ACCENT_TOKENS,
    COLOR_TOKENS,
    FLAVORS,
    NEUTRAL_TOKENS,
    Palette,
    UnknownTokenError,
    get_palette,
    is_accent,
    is_palette_token,
    normalize_accent,
    normalize_flavor,
    normalize_token,
)
from .color_math import InvalidColor, hex_to_rgb, hue_distance, is_dark, luminance_proxy, parse_color, rgb_to_hsl

__all__ = [
    "ACCENT_TOKENS",
    "AccentSet",
    "COLOR_TOKENS",
    "FLAVORS",
    "InvalidColor",
    "NEUTRAL_TOKENS",
    "Palette",
    "UnknownTokenError",
    "derive_accent_set",
    "get_palette",
    "hex_to_rgb",
    "hue_distance",
    "is_accent",
    "is_dark",
    "is_palette_token",
    "luminance_proxy",
    "nearest_token",
    "normalize_accent",
    "normalize_flavor",
    "normalize_token",
    "parse_color",
    "rgb_to_hsl",
]
