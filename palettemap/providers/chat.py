"""OpenAI-compatible ``/chat/completions`` backend (OpenRouter, Chutes, self-hosted)."""

from __future__ import annotations

import json
import socket
from typing import Dict, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .base import ProviderFatalError, ProviderTransientError, error_for_status

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
CHUTES_BASE_URL = "https://llm.chutes.ai/v1"

APP_TITLE = "Catppuccin Theme Generator"
APP_REFERER = "https://github.com/catppuccin/catppuccin"


class ChatCompletionsProvider:
    """Posts chat messages to ``{base_url}/chat/completions`` and returns the reply text."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        name: str = "openai-compatible",
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.name = name
        self.extra_headers: Dict[str, str] = dict(extra_headers or {})

    @classmethod
    def openrouter(cls, api_key: str, *, base_url: str | None = None) -> "ChatCompletionsProvider":
        return cls(
            base_url or OPENROUTER_BASE_URL,
            api_key=api_key,
            name="openrouter",
            extra_headers={"HTTP-Referer": APP_REFERER, "X-Title": APP_TITLE},
        )

    @classmethod
    def chutes(cls, api_key: str, *, base_url: str | None = None) -> "ChatCompletionsProvider":
        # Chutes rejects the OpenRouter attribution headers.
        return cls(base_url or CHUTES_BASE_URL, api_key=api_key, name="chutes")

    def complete(
        self,
        system: str,
        user: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int],
        timeout: float,
    ) -> str:
        endpoint = f"{self.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": model,
            "messages": self._build_messages(system, user),
            "temperature": temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        headers = {"Content-Type": "application/json", **self.extra_headers}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        request = Request(endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST")
        try:
            with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip()[:300] or exc.reason
            raise error_for_status(
                exc.code, f"{self.name} request failed with status {exc.code}: {message}"
            ) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise ProviderTransientError(f"{self.name} request timed out after {timeout}s") from exc
        except URLError as exc:
            raise ProviderTransientError(f"{self.name} request failed: {exc.reason}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ProviderFatalError(f"{self.name} returned invalid JSON") from exc

        content = self._extract_content(response_payload)
        if not content:
            raise ProviderFatalError(f"{self.name} returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, user: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})
        return messages

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str) and content.strip():
                return content
            # Some reasoning models only fill the reasoning channel.
            reasoning = message.get("reasoning")
            if isinstance(reasoning, str):
                return reasoning
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""


__all__ = ["CHUTES_BASE_URL", "ChatCompletionsProvider", "OPENROUTER_BASE_URL"]
