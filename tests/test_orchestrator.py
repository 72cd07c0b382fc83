from __future__ import annotations

import json
import threading
from dataclasses import replace
from typing import Callable, List

import pytest

from palettemap.config import load_config
from palettemap.failsafe import build_fallback_result
from palettemap.models import MappingSession
from palettemap.orchestrator import Orchestrator, looks_like_reasoning_model
from palettemap.prompting import PromptBuilder
from palettemap.prompting.constants import JSON_ONLY_SYSTEM_PROMPT, SYSTEM_PROMPTS
from palettemap.providers import (
    CallableProvider,
    CompletionRequest,
    ProviderFatalError,
    ProviderTransientError,
)
from palettemap.retry import RetryPolicy

FG_TO_TEXT = json.dumps({"mappings": [{"variable": "--fg", "catppuccinColor": "text", "reason": "body copy"}]})


def _scripted(steps: List[object], seen: List[CompletionRequest]) -> Callable[[CompletionRequest], str]:
    """Provider function replaying ``steps``: strings are returned, exceptions raised."""
    remaining = list(steps)

    def respond(request: CompletionRequest) -> str:
        seen.append(request)
        step = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(step, BaseException):
            raise step
        return str(step)

    return respond


def _orchestrator(provider, **kwargs) -> Orchestrator:
    kwargs.setdefault("retry_policy", RetryPolicy(backoff_ms=0))
    kwargs.setdefault("model", "test-model")
    return Orchestrator(provider, **kwargs)


def test_successful_completion_is_merged(session, variable_signals) -> None:
    seen: List[CompletionRequest] = []
    provider = CallableProvider(_scripted(['<think>maybe {"no": 1}</think>' + FG_TO_TEXT], seen))

    result = _orchestrator(provider).map_category("variables", variable_signals, session)

    assert not result.degraded
    assert result.degraded_reason is None
    entry = result.by_key()["--fg"]
    assert (entry.token, entry.reason, entry.source) == ("text", "body copy", "ai")
    assert result.stats.ai_overrides == 1
    assert len(result.entries) == len(variable_signals)

    assert provider.calls == 1
    request = seen[0]
    assert request.system == SYSTEM_PROMPTS["variables"]
    assert (request.model, request.temperature, request.max_tokens) == ("test-model", 0.3, 2000)
    assert "--link-color" in request.user


def test_transient_failures_are_retried(session, variable_signals) -> None:
    seen: List[CompletionRequest] = []
    provider = CallableProvider(
        _scripted(
            [
                ProviderTransientError("rate limited", status=429),
                ProviderTransientError("unavailable", status=503),
                FG_TO_TEXT,
            ],
            seen,
        )
    )

    result = _orchestrator(provider).map_category("variables", variable_signals, session)

    assert provider.calls == 3
    assert not result.degraded
    assert result.by_key()["--fg"].token == "text"


def test_exhausted_retries_degrade_to_fallback(session, variable_signals) -> None:
    provider = CallableProvider(_scripted([ProviderTransientError("timeout")], []))

    result = _orchestrator(provider).map_category("variables", variable_signals, session)

    assert provider.calls == 3
    assert result.degraded
    assert result.degraded_reason == "provider_unavailable"
    assert result.entries == build_fallback_result("variables", variable_signals, session).entries


def test_fatal_error_is_not_retried(session, icon_signals) -> None:
    provider = CallableProvider(_scripted([ProviderFatalError("invalid key", status=401)], []))

    result = _orchestrator(provider).map_category("icons", icon_signals, session)

    assert provider.calls == 1
    assert result.degraded_reason == "provider_error"
    assert [entry.source for entry in result.entries] == ["fallback", "fallback"]


def test_unusable_response_triggers_json_only_retry(session, variable_signals) -> None:
    seen: List[CompletionRequest] = []
    provider = CallableProvider(_scripted(["Let me think about the colors...", FG_TO_TEXT], seen))

    result = _orchestrator(provider).map_category("variables", variable_signals, session)

    assert not result.degraded
    assert len(seen) == 2
    retry = seen[1]
    assert retry.system == JSON_ONLY_SYSTEM_PROMPT
    assert retry.temperature == 0.0
    assert retry.model == "test-model"
    assert "Let me think about the colors..." in retry.user


def test_reasoning_model_switches_to_extraction_model(session, variable_signals) -> None:
    seen: List[CompletionRequest] = []
    provider = CallableProvider(_scripted(['{"colors": []}', FG_TO_TEXT], seen))
    orchestrator = _orchestrator(provider, model="deepseek/deepseek-r1", extraction_model="small")

    orchestrator.map_category("variables", variable_signals, session)

    assert [request.model for request in seen] == ["deepseek/deepseek-r1", "small"]


def test_second_unusable_response_degrades(session, variable_signals) -> None:
    provider = CallableProvider(_scripted(["no json here", "still {not json"], []))

    result = _orchestrator(provider).map_category("variables", variable_signals, session)

    assert provider.calls == 2
    assert result.degraded
    assert result.degraded_reason == "extraction_failed"


def test_without_provider_returns_plain_fallback(session, selector_signals) -> None:
    result = Orchestrator().map_category("selectors", selector_signals, session)

    assert not result.degraded
    assert result == build_fallback_result("selectors", selector_signals, session)


def test_category_outside_use_ai_skips_provider(session, icon_signals) -> None:
    provider = CallableProvider(_scripted([FG_TO_TEXT], []))

    result = _orchestrator(provider, use_ai=["variables"]).map_category("icons", icon_signals, session)

    assert provider.calls == 0
    assert not result.degraded


def test_empty_signals_never_call_provider(session) -> None:
    provider = CallableProvider(_scripted([FG_TO_TEXT], []))

    result = _orchestrator(provider).map_category("variables", [], session)

    assert provider.calls == 0
    assert result.entries == ()
    assert result.stats.coverage == 1.0


def test_cancel_before_call(session, variable_signals) -> None:
    provider = CallableProvider(_scripted([FG_TO_TEXT], []))
    cancel = threading.Event()
    cancel.set()

    result = _orchestrator(provider).map_category("variables", variable_signals, session, cancel)

    assert provider.calls == 0
    assert result.degraded_reason == "cancelled"


def test_cancel_abandons_in_flight_call(session, variable_signals) -> None:
    release = threading.Event()

    def blocking(request: CompletionRequest) -> str:
        release.wait(5)
        return FG_TO_TEXT

    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        result = _orchestrator(CallableProvider(blocking), poll_interval=0.01).map_category(
            "variables", variable_signals, session, cancel
        )
    finally:
        release.set()
        timer.cancel()

    assert result.degraded
    assert result.degraded_reason == "cancelled"
    assert all(entry.source == "fallback" for entry in result.entries)


def test_cancel_interrupts_backoff(session, variable_signals) -> None:
    provider = CallableProvider(_scripted([ProviderTransientError("busy", status=503)], []))
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        result = _orchestrator(provider, retry_policy=RetryPolicy(backoff_ms=10000)).map_category(
            "variables", variable_signals, session, cancel
        )
    finally:
        timer.cancel()

    assert provider.calls == 1
    assert result.degraded_reason == "cancelled"


def test_map_all_reports_every_requested_category(variable_signals, icon_signals, selector_signals) -> None:
    session = MappingSession(flavor="mocha", main_accent="blue")
    provider = CallableProvider(lambda request: '{"mappings": []}')

    report = _orchestrator(provider).map_all(
        session,
        variables=variable_signals,
        icons=icon_signals,
        selectors=selector_signals,
    )

    assert report.accent_set.bi_accent1 == "mauve"
    assert list(report.results) == ["variables", "icons", "selectors"]
    assert not report.degraded
    assert len(report.results["selectors"].entries) == len(selector_signals)
    assert report.to_dict()["accentSet"]["biAccent2"] == "teal"


def test_map_all_honours_category_selection(session, variable_signals) -> None:
    report = Orchestrator().map_all(session, variables=variable_signals, categories=["variables"])
    assert list(report.results) == ["variables"]


def test_from_config_without_provider(tmp_path) -> None:
    (tmp_path / ".palettemap.yml").write_text(
        "retry:\n  max_retries: 4\nmapping:\n  use_ai: [icons]\n  max_selectors: 12\n",
        encoding="utf-8",
    )

    orchestrator = Orchestrator.from_config(load_config(tmp_path))

    assert orchestrator.provider is None
    assert orchestrator.retry_policy.attempts == 5
    assert orchestrator.use_ai == frozenset({"icons"})
    assert orchestrator.max_selectors == 12


@pytest.mark.parametrize(
    ("model", "expected"),
    [
        ("deepseek/deepseek-r1:free", True),
        ("microsoft/mai-ds-r1", True),
        ("deepseek-reasoner", True),
        ("qwen/qwen3-thinking", True),
        ("gpt-4o", False),
        ("qwen3-r10", False),
        ("", False),
    ],
)
def test_looks_like_reasoning_model(model: str, expected: bool) -> None:
    assert looks_like_reasoning_model(model) is expected


def test_selector_degradation_matches_fallback_exactly(session, selector_signals) -> None:
    provider = CallableProvider(_scripted([ProviderTransientError("busy", status=503)], []))

    result = _orchestrator(provider).map_category("selectors", selector_signals, session)

    fallback = build_fallback_result("selectors", selector_signals, session)
    assert result == replace(fallback, degraded=True, degraded_reason="provider_unavailable")
    assert [dict(entry.properties) for entry in result.entries] == [dict(entry.properties) for entry in fallback.entries]


def test_provider_breaking_protocol_is_a_fatal_provider_error(session, icon_signals) -> None:
    def broken(request: CompletionRequest) -> str:
        raise RuntimeError("socket closed unexpectedly")

    provider = CallableProvider(broken)

    result = _orchestrator(provider).map_category("icons", icon_signals, session)

    assert provider.calls == 1
    assert result.degraded_reason == "provider_error"


def test_prompt_building_errors_are_not_reported_as_provider_failures(session, variable_signals) -> None:
    class _BrokenBuilder(PromptBuilder):
        def build(self, category, signals, session, *, max_selectors=None):  # type: ignore[no-untyped-def]
            raise KeyError("missing template variable")

    provider = CallableProvider(_scripted([FG_TO_TEXT], []))

    with pytest.raises(KeyError):
        _orchestrator(provider, prompt_builder=_BrokenBuilder()).map_category("variables", variable_signals, session)
    assert provider.calls == 0
