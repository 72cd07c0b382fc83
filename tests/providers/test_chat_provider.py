"""Tests for the OpenAI-compatible chat completions backend."""

from __future__ import annotations

import io
import json
from typing import Any, Dict, List
from urllib.error import HTTPError, URLError

import pytest

from palettemap.providers import ChatCompletionsProvider, ProviderFatalError, ProviderTransientError
from palettemap.providers.chat import CHUTES_BASE_URL, OPENROUTER_BASE_URL


def _reply(payload: Any) -> io.BytesIO:
    return io.BytesIO(json.dumps(payload).encode("utf-8"))


def _capture(monkeypatch: pytest.MonkeyPatch, response: Any) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def fake_urlopen(request, timeout):  # type: ignore[no-untyped-def]
        calls.append(
            {
                "url": request.full_url,
                "headers": {name.lower(): value for name, value in request.header_items()},
                "body": json.loads(request.data.decode("utf-8")),
                "timeout": timeout,
            }
        )
        if isinstance(response, BaseException):
            raise response
        return response

    monkeypatch.setattr("palettemap.providers.chat.urlopen", fake_urlopen)
    return calls


def _complete(provider: ChatCompletionsProvider) -> str:
    return provider.complete("sys", "user", model="m", temperature=0.2, max_tokens=64, timeout=5.0)


def test_openrouter_request_shape(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _capture(monkeypatch, _reply({"choices": [{"message": {"content": '  {"mappings": []}  '}}]}))

    result = _complete(ChatCompletionsProvider.openrouter("secret"))

    assert result == '{"mappings": []}'
    call = calls[0]
    assert call["url"] == f"{OPENROUTER_BASE_URL}/chat/completions"
    assert call["timeout"] == 5.0
    assert call["headers"]["authorization"] == "Bearer secret"
    assert call["headers"]["x-title"] == "Catppuccin Theme Generator"
    assert "http-referer" in call["headers"]
    assert call["body"] == {
        "model": "m",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "user"}],
        "temperature": 0.2,
        "max_tokens": 64,
    }


def test_chutes_preset_omits_attribution_headers(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _capture(monkeypatch, _reply({"choices": [{"message": {"content": "ok"}}]}))

    _complete(ChatCompletionsProvider.chutes("key"))

    assert calls[0]["url"] == f"{CHUTES_BASE_URL}/chat/completions"
    assert "x-title" not in calls[0]["headers"]
    assert "http-referer" not in calls[0]["headers"]


def test_reasoning_channel_is_used_when_content_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(monkeypatch, _reply({"choices": [{"message": {"content": "", "reasoning": "<think>x</think>{}"}}]}))
    assert _complete(ChatCompletionsProvider("http://local/v1/")) == "<think>x</think>{}"


@pytest.mark.parametrize("status", [429, 503])
def test_rate_limits_are_transient(monkeypatch: pytest.MonkeyPatch, status: int) -> None:
    error = HTTPError("http://x", status, "busy", None, io.BytesIO(b"slow down"))
    _capture(monkeypatch, error)

    with pytest.raises(ProviderTransientError) as excinfo:
        _complete(ChatCompletionsProvider("http://x"))

    assert excinfo.value.status == status
    assert "slow down" in str(excinfo.value)


def test_auth_failure_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(monkeypatch, HTTPError("http://x", 401, "Unauthorized", None, io.BytesIO(b'{"error": "bad key"}')))

    with pytest.raises(ProviderFatalError) as excinfo:
        _complete(ChatCompletionsProvider("http://x"))

    assert excinfo.value.status == 401
    assert excinfo.value.transient is False


def test_connection_errors_and_timeouts_are_transient(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(monkeypatch, URLError("connection refused"))
    with pytest.raises(ProviderTransientError):
        _complete(ChatCompletionsProvider("http://x"))

    _capture(monkeypatch, TimeoutError("timed out"))
    with pytest.raises(ProviderTransientError, match="timed out"):
        _complete(ChatCompletionsProvider("http://x"))


@pytest.mark.parametrize(
    "response",
    [
        io.BytesIO(b"<html>oops</html>"),
        _reply({"choices": []}),
        _reply({"choices": [{"message": {"content": "   "}}]}),
    ],
)
def test_unusable_responses_are_fatal(monkeypatch: pytest.MonkeyPatch, response: io.BytesIO) -> None:
    _capture(monkeypatch, response)
    with pytest.raises(ProviderFatalError):
        _complete(ChatCompletionsProvider("http://x"))
