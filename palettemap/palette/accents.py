"""Accent harmonies: bi-accents at ±72° and co-accents at ±144° around the main accent."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, Sequence

from .catalog import ACCENT_TOKENS, COLOR_TOKENS, Palette, UnknownTokenError, get_palette, normalize_accent
from .color_math import RGB, hsl_to_rgb, hue_distance, hue_of, rgb_distance_squared, rgb_to_hsl

BI_ACCENT_OFFSET = 72.0
CO_ACCENT_OFFSET = 144.0


@dataclass(frozen=True)
class AccentSet:
    """Main accent plus its derived harmony partners for one flavor."""

    flavor: str
    main: str
    bi_accent1: str
    bi_accent2: str
    co_accent1: str
    co_accent2: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "flavor": self.flavor,
            "main": self.main,
            "biAccent1": self.bi_accent1,
            "biAccent2": self.bi_accent2,
            "coAccent1": self.co_accent1,
            "coAccent2": self.co_accent2,
        }


def nearest_token(
    rgb: RGB,
    palette: Palette,
    *,
    candidates: Sequence[str] = ACCENT_TOKENS,
    exclude: Iterable[str] = (),
    hue: float | None = None,
) -> str:
    """Return the candidate whose reference hue is closest to ``rgb``.

    Ties on hue distance fall back to RGB distance, then to declaration order.
    ``hue`` overrides the hue computed from ``rgb`` (used for rotated targets whose
    RGB rounding would otherwise shift the hue slightly).
    """
    excluded = set(exclude)
    target_hue = hue_of(rgb) if hue is None else hue % 360.0
    best: tuple[float, int, int] | None = None
    best_token: str | None = None
    for token in candidates:
        if token in excluded:
            continue
        token_rgb = palette.rgb(token)
        key = (
            hue_distance(target_hue, hue_of(token_rgb)),
            rgb_distance_squared(rgb, token_rgb),
            COLOR_TOKENS.index(token),
        )
        if best is None or key < best:
            best = key
            best_token = token
    if best_token is None:
        raise UnknownTokenError("No candidate tokens left after exclusions")
    return best_token


def derive_accent_set(flavor: str, main: str) -> AccentSet:
    """Derive the accent harmonies for ``main`` in ``flavor``. Pure and memoized."""
    palette = get_palette(flavor)
    accent = normalize_accent(main)
    if accent is None:
        raise UnknownTokenError(
            f"Unknown accent {main!r}; expected one of {', '.join(ACCENT_TOKENS)}"
        )
    return _derive(palette.flavor, accent)


@lru_cache(maxsize=None)
def _derive(flavor: str, main: str) -> AccentSet:
    palette = get_palette(flavor)
    hue, saturation, lightness = rgb_to_hsl(palette.rgb(main))

    def pick(offset: float, exclude: Sequence[str]) -> str:
        target = hue + offset
        return nearest_token(
            hsl_to_rgb((target, saturation, lightness)),
            palette,
            exclude=exclude,
            hue=target,
        )

    bi1 = pick(BI_ACCENT_OFFSET, [main])
    bi2 = pick(-BI_ACCENT_OFFSET, [main, bi1])
    co1 = pick(CO_ACCENT_OFFSET, [main, bi1, bi2])
    co2 = pick(-CO_ACCENT_OFFSET, [main, bi1, bi2, co1])
    return AccentSet(
        flavor=flavor,
        main=main,
        bi_accent1=bi1,
        bi_accent2=bi2,
        co_accent1=co1,
        co_accent2=co2,
    )


__all__ = [
    "AccentSet",
    "BI_ACCENT_OFFSET",
    "CO_ACCENT_OFFSET",
    "derive_accent_set",
    "nearest_token",
]
