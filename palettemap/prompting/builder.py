"""Builds mapping prompts for the text-completion provider."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader

from ..failsafe import PURPOSE_RULES, infer_purpose
from ..models import IconColorSignal, MappingSession, SelectorSignal, VariableSignal
from ..palette import ACCENT_TOKENS
from .constants import (
    ICON_SELECTORS_SHOWN,
    JSON_ONLY_SYSTEM_PROMPT,
    PALETTE_TIERS,
    RAW_RESPONSE_LIMIT,
    SYSTEM_PROMPTS,
    VARIABLES_PER_PURPOSE,
)

DEFAULT_MAX_SELECTORS = 40


@dataclass
class PromptRequest:
    """A rendered system/user prompt pair for one category."""

    category: str
    system: str
    user: str
    metadata: Dict[str, object] = field(default_factory=dict)


class PromptBuilder:
    """Renders category prompts from jinja2 templates."""

    def __init__(self, templates_dir: Path | None = None, *, max_selectors: int = DEFAULT_MAX_SELECTORS) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.max_selectors = max_selectors
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build(
        self,
        category: str,
        signals: Sequence[object],
        session: MappingSession,
        *,
        max_selectors: int | None = None,
    ) -> PromptRequest:
        if category == "variables":
            context, metadata = self._variables_context(signals)  # type: ignore[arg-type]
        elif category == "icons":
            context, metadata = self._icons_context(signals)  # type: ignore[arg-type]
        elif category == "selectors":
            limit = self.max_selectors if max_selectors is None else max_selectors
            context, metadata = self._selectors_context(signals, limit)  # type: ignore[arg-type]
        else:
            raise ValueError(f"Unknown mapping category: {category!r}")

        template = self._env.get_template(f"{category}.j2")
        user = template.render(**self._session_context(session), **context).strip()
        metadata["signals"] = len(signals)
        return PromptRequest(category=category, system=SYSTEM_PROMPTS[category], user=user, metadata=metadata)

    def build_json_only(self, category: str, raw_response: str) -> PromptRequest:
        """Prompt asking the model to re-emit only the JSON object found in ``raw_response``."""
        excerpt = raw_response[:RAW_RESPONSE_LIMIT]
        user = self._env.get_template("json_only.j2").render(raw=excerpt).strip()
        return PromptRequest(
            category=category,
            system=JSON_ONLY_SYSTEM_PROMPT,
            user=user,
            metadata={"retry": "json_only", "excerpt_chars": len(excerpt)},
        )

    @staticmethod
    def _session_context(session: MappingSession) -> Dict[str, object]:
        return {
            "flavor": session.flavor,
            "mode": session.effective_mode,
            "main": session.main_accent,
            "accents": session.accent_set,
            "tiers": PALETTE_TIERS,
            "accent_names": ACCENT_TOKENS,
        }

    @staticmethod
    def _variables_context(signals: Sequence[VariableSignal]) -> tuple[Dict[str, object], Dict[str, object]]:
        order = [purpose for purpose, _ in PURPOSE_RULES] + ["other"]
        grouped: "OrderedDict[str, List[VariableSignal]]" = OrderedDict((purpose, []) for purpose in order)
        for signal in signals:
            grouped[infer_purpose(signal.name)].append(signal)

        groups = []
        for purpose, members in grouped.items():
            if not members:
                continue
            ranked = sorted(members, key=lambda item: item.frequency, reverse=True)
            groups.append(
                {
                    "purpose": purpose,
                    "count": len(members),
                    "shown": ranked[:VARIABLES_PER_PURPOSE],
                    "hidden": max(0, len(members) - VARIABLES_PER_PURPOSE),
                }
            )
        metadata: Dict[str, object] = {"groups": {group["purpose"]: group["count"] for group in groups}}
        return {"groups": groups, "total": len(signals)}, metadata

    @staticmethod
    def _icons_context(signals: Sequence[IconColorSignal]) -> tuple[Dict[str, object], Dict[str, object]]:
        counts: Dict[str, int] = {}
        selectors: Dict[str, List[str]] = {}
        for signal in signals:
            counts[signal.value] = counts.get(signal.value, 0) + 1
            seen = selectors.setdefault(signal.value, [])
            if signal.selector not in seen:
                seen.append(signal.selector)
        # Stable sort keeps first-seen order among equal counts.
        ranked = sorted(counts, key=lambda value: counts[value], reverse=True)
        colors = [
            {
                "color": value,
                "count": counts[value],
                "shown": selectors[value][:ICON_SELECTORS_SHOWN],
                "more": len(selectors[value]) > ICON_SELECTORS_SHOWN,
            }
            for value in ranked
        ]
        return {"colors": colors}, {"unique_colors": len(colors)}

    @staticmethod
    def _selectors_context(
        signals: Sequence[SelectorSignal],
        limit: int,
    ) -> tuple[Dict[str, object], Dict[str, object]]:
        shown = list(signals[: max(0, limit)])
        entries = [
            {
                "signal": signal,
                "styles": json.dumps(dict(signal.current_styles), sort_keys=True),
            }
            for signal in shown
        ]
        return {"entries": entries}, {"shown": len(shown), "omitted": len(signals) - len(shown)}


__all__ = ["DEFAULT_MAX_SELECTORS", "PromptBuilder", "PromptRequest"]
