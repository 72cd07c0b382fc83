from __future__ import annotations

import logging
from typing import Iterator

import pytest

from palettemap.models import IconColorSignal, MappingSession, SelectorSignal, VariableSignal


@pytest.fixture(autouse=True)
def _reset_palettemap_logging() -> Iterator[None]:
    """CLI tests install handlers bound to captured streams; drop them between tests."""
    yield
    logger = logging.getLogger("palettemap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def session() -> MappingSession:
    return MappingSession(flavor="mocha", main_accent="blue")


@pytest.fixture
def variable_signals() -> list[VariableSignal]:
    return [
        VariableSignal(name="--bg-primary", value="#ffffff", frequency=8),
        VariableSignal(name="--fg", value="#111111", frequency=2, scope="element"),
        VariableSignal(name="--link-color", value="#1a73e8", frequency=12),
        VariableSignal(name="--divider", value="#dddddd", scope="class"),
        VariableSignal(name="--shadow", value="rgba(0, 0, 0, 0.2)", scope="class", frequency=7),
    ]


@pytest.fixture
def icon_signals() -> list[IconColorSignal]:
    return [
        IconColorSignal(value="#89b4fa", selector=".nav svg"),
        IconColorSignal(value="currentColor", selector=".logo", color_type="stroke"),
    ]


@pytest.fixture
def selector_signals() -> list[SelectorSignal]:
    return [
        SelectorSignal(
            selector=".btn-primary",
            category="button",
            frequency=14,
            is_interactive=True,
            has_visible_background=True,
            current_styles={"backgroundColor": "#1a73e8", "color": "#ffffff"},
        ),
        SelectorSignal(selector="p", category="text", is_text_only=True, frequency=6),
        SelectorSignal(selector=".card", category="card", has_visible_background=True),
    ]
