"""Tests for the Catppuccin palette catalog."""

from __future__ import annotations

import pytest

from palettemap.palette import (
    ACCENT_TOKENS,
    COLOR_TOKENS,
    FLAVORS,
    NEUTRAL_TOKENS,
    UnknownTokenError,
    get_palette,
    is_accent,
    is_palette_token,
    normalize_accent,
    normalize_token,
)


def test_catalog_shape() -> None:
    assert FLAVORS == ("latte", "frappe", "macchiato", "mocha")
    assert len(NEUTRAL_TOKENS) == 12
    assert len(ACCENT_TOKENS) == 14
    assert len(set(COLOR_TOKENS)) == 26
    for flavor in FLAVORS:
        palette = get_palette(flavor)
        assert list(palette) == list(COLOR_TOKENS)
        assert all(palette.hex(token).startswith("#") for token in palette)


def test_palette_lookup_is_case_insensitive() -> None:
    palette = get_palette(" Mocha ")
    assert palette.flavor == "mocha"
    assert palette.hex("blue") == "#89b4fa"
    assert palette.rgb("base") == (30, 30, 46)
    assert "mauve" in palette
    assert "purple" not in palette


def test_only_latte_is_light() -> None:
    assert not get_palette("latte").is_dark
    assert all(get_palette(name).is_dark for name in ("frappe", "macchiato", "mocha"))


def test_unknown_names_raise() -> None:
    with pytest.raises(UnknownTokenError):
        get_palette("espresso")
    with pytest.raises(UnknownTokenError):
        get_palette("mocha").hex("purple")


def test_token_normalisation() -> None:
    assert normalize_token("  Surface0 ") == "surface0"
    assert normalize_token("not-a-real-color") is None
    assert normalize_token(42) is None
    assert normalize_accent("Mauve") == "mauve"
    assert normalize_accent("text") is None


def test_membership_helpers_do_not_normalise() -> None:
    assert is_palette_token("overlay0")
    assert not is_palette_token("Overlay0")
    assert is_accent("teal")
    assert not is_accent("base")


def test_palettes_are_hashable() -> None:
    assert len({get_palette("mocha"), get_palette("mocha")}) == 1
