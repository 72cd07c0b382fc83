"""Decode crawler signal payloads (camelCase or snake_case JSON) into signal models."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .models import COLOR_PROPERTIES, IconColorSignal, SelectorSignal, VariableSignal


class SignalFormatError(ValueError):
    """Raised when a signals payload cannot be decoded."""


@dataclass(frozen=True)
class SignalBundle:
    """Signals for every category plus the site mode reported by the crawler."""

    variables: Tuple[VariableSignal, ...] = ()
    icons: Tuple[IconColorSignal, ...] = ()
    selectors: Tuple[SelectorSignal, ...] = ()
    mode: Optional[str] = None


def load_signals(path: Path) -> SignalBundle:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SignalFormatError(f"{path} is not valid JSON: {exc}") from exc
    return parse_signals(data)


def parse_signals(data: Any) -> SignalBundle:
    if not isinstance(data, Mapping):
        raise SignalFormatError("signals payload must be a JSON object")
    mode = data.get("mode")
    return SignalBundle(
        variables=tuple(_variable(item) for item in _items(data, "variables")),
        icons=tuple(_icon(item) for item in _items(data, "icons", "svgColors")),
        selectors=tuple(_selector(item) for item in _items(data, "selectors")),
        mode=mode if isinstance(mode, str) and mode else None,
    )


def _items(data: Mapping[str, Any], *names: str) -> Iterable[Mapping[str, Any]]:
    for name in names:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, list):
            raise SignalFormatError(f"'{name}' must be a list")
        for index, item in enumerate(value):
            if not isinstance(item, Mapping):
                raise SignalFormatError(f"'{name}[{index}]' must be an object")
            yield item
        return


def _pick(item: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in item and item[name] is not None:
            return item[name]
    return default


def _required(item: Mapping[str, Any], *names: str) -> str:
    value = _pick(item, *names)
    if not isinstance(value, str) or not value.strip():
        raise SignalFormatError(f"signal is missing '{names[0]}': {dict(item)!r}")
    return value.strip()


def _variable(item: Mapping[str, Any]) -> VariableSignal:
    usage: List[str] = [str(entry) for entry in _pick(item, "usage", default=[]) if entry is not None]
    return VariableSignal(
        name=_required(item, "name"),
        value=str(_pick(item, "value", default="")),
        computed_value=str(_pick(item, "computed_value", "computedValue", default="")),
        scope=str(_pick(item, "scope", default="root")),
        selector=str(_pick(item, "selector", default=":root")),
        frequency=int(_pick(item, "frequency", default=0)),
        usage=tuple(usage),
    )


def _icon(item: Mapping[str, Any]) -> IconColorSignal:
    return IconColorSignal(
        value=_required(item, "value", "color"),
        selector=str(_pick(item, "selector", default="svg")),
        color_type=str(_pick(item, "color_type", "colorType", "type", default="fill")),
    )


def _selector(item: Mapping[str, Any]) -> SelectorSignal:
    styles_raw = _pick(item, "current_styles", "currentStyles", default={})
    styles: Dict[str, str] = {}
    if isinstance(styles_raw, Mapping):
        styles = {name: str(styles_raw[name]) for name in COLOR_PROPERTIES if styles_raw.get(name)}
    return SelectorSignal(
        selector=_required(item, "selector"),
        category=str(_pick(item, "category", default="other")),
        specificity=int(_pick(item, "specificity", default=0)),
        frequency=int(_pick(item, "frequency", default=0)),
        is_interactive=bool(_pick(item, "is_interactive", "isInteractive", default=False)),
        has_visible_background=bool(_pick(item, "has_visible_background", "hasVisibleBackground", default=False)),
        has_border=bool(_pick(item, "has_border", "hasBorder", default=False)),
        is_text_only=bool(_pick(item, "is_text_only", "isTextOnly", default=False)),
        current_styles=styles,
    )


__all__ = ["SignalBundle", "SignalFormatError", "load_signals", "parse_signals"]
