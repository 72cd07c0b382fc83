"""Local Ollama backend using the native ``/api/chat`` endpoint."""

from __future__ import annotations

import json
import socket
from typing import Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .base import ProviderError, ProviderFatalError, ProviderTransientError, error_for_status

DEFAULT_BASE_URLS: tuple[str, ...] = ("http://localhost:11434",)


class OllamaProvider:
    """Tries each base URL in order until one answers."""

    name = "ollama"

    def __init__(self, base_urls: Sequence[str] | str | None = None) -> None:
        if isinstance(base_urls, str):
            base_urls = [base_urls]
        urls = [url.rstrip("/") for url in (base_urls or DEFAULT_BASE_URLS) if url]
        self.base_urls: tuple[str, ...] = tuple(urls) or DEFAULT_BASE_URLS

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
        options: dict[str, object] = {"temperature": temperature}
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "options": options,
        }
        data = json.dumps(body).encode("utf-8")

        last_error: ProviderError | None = None
        for base in self.base_urls:
            try:
                return self._post(f"{base}/api/chat", data, timeout)
            except ProviderTransientError as exc:
                last_error = exc
        raise ProviderTransientError(
            f"Failed to reach Ollama at {', '.join(self.base_urls)}: {last_error}"
        ) from last_error

    def _post(self, endpoint: str, data: bytes, timeout: float) -> str:
        request = Request(endpoint, data=data, headers={"Content-Type": "application/json"}, method="POST")
        try:
            with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise error_for_status(exc.code, f"Ollama request failed with status {exc.code}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise ProviderTransientError(f"Ollama request to {endpoint} timed out") from exc
        except URLError as exc:
            raise ProviderTransientError(f"Ollama request to {endpoint} failed: {exc.reason}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ProviderFatalError("Ollama returned invalid JSON") from exc

        content = ""
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                content = message["content"]
            elif isinstance(payload.get("response"), str):
                content = payload["response"]
        if not content.strip():
            raise ProviderFatalError("Ollama returned an empty response")
        return content.strip()


__all__ = ["OllamaProvider"]
