from __future__ import annotations

import json
from pathlib import Path

import pytest

from palettemap.loader import SignalFormatError, load_signals, parse_signals


def test_camel_case_payload_is_decoded() -> None:
    bundle = parse_signals(
        {
            "mode": "light",
            "variables": [{"name": "--fg", "value": "#111", "computedValue": "#111111", "usage": ["color"], "frequency": 3}],
            "svgColors": [{"color": "#89B4FA", "selector": ".nav svg", "colorType": "stroke"}],
            "selectors": [
                {
                    "selector": "a.button",
                    "category": "button",
                    "isInteractive": True,
                    "currentStyles": {"backgroundColor": "#1a73e8", "fontSize": "14px", "color": ""},
                }
            ],
        }
    )

    assert bundle.mode == "light"
    variable = bundle.variables[0]
    assert (variable.name, variable.resolved_value, variable.usage, variable.frequency) == ("--fg", "#111111", ("color",), 3)
    assert (bundle.icons[0].value, bundle.icons[0].color_type) == ("#89B4FA", "stroke")
    selector = bundle.selectors[0]
    assert selector.is_interactive is True
    assert dict(selector.current_styles) == {"backgroundColor": "#1a73e8"}


def test_snake_case_payload_and_defaults() -> None:
    bundle = parse_signals(
        {
            "variables": [{"name": "--bg", "computed_value": "#fff"}],
            "icons": [{"value": "currentColor"}],
            "selectors": [{"selector": "p", "is_text_only": True}],
        }
    )

    assert bundle.mode is None
    assert bundle.variables[0].scope == "root"
    assert bundle.icons[0].selector == "svg"
    assert bundle.selectors[0].is_text_only is True
    assert bundle.selectors[0].category == "other"


def test_missing_sections_are_empty() -> None:
    bundle = parse_signals({})
    assert (bundle.variables, bundle.icons, bundle.selectors) == ((), (), ())


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"variables": {"name": "--fg"}},
        {"icons": ["#fff"]},
        {"variables": [{"value": "#fff"}]},
        {"selectors": [{"selector": "  "}]},
    ],
)
def test_malformed_payloads_raise(payload) -> None:
    with pytest.raises(SignalFormatError):
        parse_signals(payload)


def test_load_signals_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "signals.json"
    path.write_text(json.dumps({"icons": [{"value": "#fff"}]}), encoding="utf-8")
    assert load_signals(path).icons[0].value == "#fff"


def test_load_signals_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "signals.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SignalFormatError):
        load_signals(path)
