"""Color conversions and distance helpers used by the classifier and accent derivation."""

from __future__ import annotations

import colorsys
import re
from typing import Tuple

RGB = Tuple[int, int, int]
HSL = Tuple[float, float, float]

_HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_FUNC_PATTERN = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*[,\s]\s*(\d{1,3})\s*[,\s]\s*(\d{1,3})\s*(?:[,/]\s*[\d.]+%?\s*)?\)$",
    re.IGNORECASE,
)

DARK_THRESHOLD = 128.0


class InvalidColor(ValueError):
    """Raised when a color string cannot be interpreted."""


def hex_to_rgb(value: str) -> RGB:
    """Convert a 3, 6 or 8 digit hex color to an RGB triple (alpha is ignored)."""
    match = _HEX_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidColor(f"Malformed hex color: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def rgb_to_hex(rgb: RGB) -> str:
    r, g, b = (max(0, min(255, int(channel))) for channel in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def parse_color(value: str) -> RGB:
    """Parse hex or ``rgb()``/``rgba()`` notation into an RGB triple."""
    if not isinstance(value, str):
        raise InvalidColor(f"Color must be a string, got {type(value).__name__}")
    cleaned = value.strip()
    func = _RGB_FUNC_PATTERN.match(cleaned)
    if func is not None:
        channels = tuple(int(part) for part in func.groups())
        if any(channel > 255 for channel in channels):
            raise InvalidColor(f"RGB channel out of range: {value!r}")
        return channels  # type: ignore[return-value]
    return hex_to_rgb(cleaned)


def rgb_to_hsl(rgb: RGB) -> HSL:
    """Return ``(hue in degrees, saturation 0-1, lightness 0-1)``."""
    r, g, b = (channel / 255.0 for channel in rgb)
    hue, lightness, saturation = colorsys.rgb_to_hls(r, g, b)
    return (hue * 360.0, saturation, lightness)


def hsl_to_rgb(hsl: HSL) -> RGB:
    hue, saturation, lightness = hsl
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness, saturation)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def hue_of(rgb: RGB) -> float:
    return rgb_to_hsl(rgb)[0]


def luminance_proxy(rgb: RGB) -> float:
    """Plain channel average. Not perceptual luminance; callers rely on this exact value."""
    r, g, b = rgb
    return (r + g + b) / 3.0


def is_dark(rgb: RGB) -> bool:
    return luminance_proxy(rgb) < DARK_THRESHOLD


def hue_distance(a: float, b: float) -> float:
    """Circular distance between two hues in degrees."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def rgb_distance_squared(a: RGB, b: RGB) -> int:
    return sum((x - y) * (x - y) for x, y in zip(a, b))


__all__ = [
    "DARK_THRESHOLD",
    "HSL",
    "InvalidColor",
    "RGB",
    "hex_to_rgb",
    "hsl_to_rgb",
    "hue_distance",
    "hue_of",
    "is_dark",
    "luminance_proxy",
    "parse_color",
    "rgb_distance_squared",
    "rgb_to_hex",
    "rgb_to_hsl",
]
