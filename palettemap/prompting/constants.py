"""Shared constants for mapping prompts."""

from __future__ import annotations

SYSTEM_PROMPTS: dict[str, str] = {
    "variables": (
        "You are a CSS theming expert. Map CSS custom properties onto Catppuccin palette "
        "tokens and answer with a single JSON object."
    ),
    "icons": (
        "You are mapping SVG icon colors onto a Catppuccin palette. "
        "Answer with a single JSON object."
    ),
    "selectors": (
        "You are mapping CSS selectors to Catppuccin colors while keeping layout identical. "
        "Only color-related properties may change. Answer with a single JSON object."
    ),
}

JSON_ONLY_SYSTEM_PROMPT = "Output only JSON. No thinking. No markdown. Just JSON."

# Characters of the failed response echoed back in the JSON-only retry.
RAW_RESPONSE_LIMIT = 3000

VARIABLES_PER_PURPOSE = 10
ICON_SELECTORS_SHOWN = 3

PALETTE_TIERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Base & surfaces", ("base", "mantle", "crust", "surface0", "surface1", "surface2")),
    ("Text", ("text", "subtext0", "subtext1")),
    ("Overlays & borders", ("overlay0", "overlay1", "overlay2")),
)


__all__ = [
    "ICON_SELECTORS_SHOWN",
    "JSON_ONLY_SYSTEM_PROMPT",
    "PALETTE_TIERS",
    "RAW_RESPONSE_LIMIT",
    "SYSTEM_PROMPTS",
    "VARIABLES_PER_PURPOSE",
]
