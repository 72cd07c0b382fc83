"""Per-category mapping pipeline: fallback, prompt, completion, extraction, merge."""

from __future__ import annotations

import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, Iterable, Optional, Sequence

from .config import DEFAULT_EXTRACTION_MODEL, DEFAULT_MODEL, PaletteMapConfig
from .extraction import extract_json
from .failsafe import build_fallback_result
from .logging import get_logger
from .merge import merge_result, parse_suggestions, validate_result
from .models import CATEGORIES, MappingReport, MappingResult, MappingSession
from .prompting import PromptBuilder, PromptRequest
from .providers import ProviderError, ProviderFatalError, TextCompletionProvider, create_provider
from .retry import RetryPolicy

REQUIRED_KEYS = ("mappings",)

_REASONING_MODEL_PATTERN = re.compile(
    r"deepseek-r1|deepresearch|mai-ds|reasoner|thinking|(?:^|[^a-z0-9])r1(?:[^a-z0-9]|$)",
    re.IGNORECASE,
)

_AUTO_PROVIDER = object()


class MappingCancelled(Exception):
    """Raised internally when the caller's cancel event fires mid-pipeline."""


def looks_like_reasoning_model(model: str) -> bool:
    """Heuristic for models that wrap answers in long reasoning traces."""
    return bool(model) and _REASONING_MODEL_PATTERN.search(model) is not None


class Orchestrator:
    """Maps signal categories onto the palette, consulting the provider when enabled."""

    def __init__(
        self,
        provider: TextCompletionProvider | None = None,
        *,
        model: str = DEFAULT_MODEL,
        extraction_model: str | None = DEFAULT_EXTRACTION_MODEL,
        temperature: float = 0.3,
        max_tokens: Optional[int] = 2000,
        timeout: float = 60.0,
        retry_policy: RetryPolicy | None = None,
        prompt_builder: PromptBuilder | None = None,
        use_ai: Iterable[str] = CATEGORIES,
        max_selectors: int = 40,
        poll_interval: float = 0.05,
    ) -> None:
        self.provider = provider
        self.model = model
        self.extraction_model = extraction_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.prompt_builder = prompt_builder or PromptBuilder(max_selectors=max_selectors)
        self.use_ai = frozenset(use_ai)
        self.max_selectors = max_selectors
        self.poll_interval = poll_interval
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(
        cls,
        config: PaletteMapConfig,
        provider: TextCompletionProvider | None | object = _AUTO_PROVIDER,
    ) -> "Orchestrator":
        """Build an orchestrator from ``.palettemap.yml`` settings."""
        if provider is _AUTO_PROVIDER:
            provider = create_provider(config.provider)
        return cls(
            provider,  # type: ignore[arg-type]
            model=config.provider.resolved_model(),
            extraction_model=config.provider.extraction_model,
            temperature=config.provider.temperature,
            max_tokens=config.provider.max_tokens,
            timeout=config.provider.request_timeout,
            retry_policy=config.retry.to_policy(),
            use_ai=config.mapping.use_ai,
            max_selectors=config.mapping.max_selectors,
        )

    def map_all(
        self,
        session: MappingSession,
        *,
        variables: Sequence[object] = (),
        icons: Sequence[object] = (),
        selectors: Sequence[object] = (),
        categories: Iterable[str] = CATEGORIES,
        cancel: threading.Event | None = None,
    ) -> MappingReport:
        """Run every requested category concurrently and collect the report."""
        inputs: Dict[str, Sequence[object]] = {
            "variables": tuple(variables),
            "icons": tuple(icons),
            "selectors": tuple(selectors),
        }
        selected = [name for name in CATEGORIES if name in set(categories)]
        if not selected:
            return MappingReport(accent_set=session.accent_set, results={})
        with ThreadPoolExecutor(max_workers=len(selected), thread_name_prefix="palettemap") as pool:
            futures = {
                name: pool.submit(self._map_on_worker, name, inputs[name], session, cancel)
                for name in selected
            }
            results = {name: future.result() for name, future in futures.items()}
        return MappingReport(accent_set=session.accent_set, results=results)

    def _map_on_worker(
        self,
        category: str,
        signals: Sequence[object],
        session: MappingSession,
        cancel: threading.Event | None,
    ) -> MappingResult:
        threading.current_thread().name = f"palettemap-{category}"
        return self.map_category(category, signals, session, cancel)

    def map_category(
        self,
        category: str,
        signals: Sequence[object],
        session: MappingSession,
        cancel: threading.Event | None = None,
    ) -> MappingResult:
        """Map one category. Never raises for provider or extraction failures."""
        signals = tuple(signals)
        fallback = build_fallback_result(category, signals, session)
        if not signals:
            return fallback
        if self.provider is None or category not in self.use_ai:
            self.logger.debug("AI mapping disabled for %s; using deterministic mapping", category)
            return fallback

        self.logger.info(
            "Mapping %d %s via %s (%s)",
            len(signals),
            category,
            getattr(self.provider, "name", "provider"),
            self.model,
        )
        try:
            payload = self._request_mappings(category, signals, session, cancel)
        except MappingCancelled:
            return self._degrade(fallback, "cancelled", "cancelled by caller")
        except ProviderError as exc:
            reason = "provider_unavailable" if exc.transient else "provider_error"
            return self._degrade(fallback, reason, str(exc))
        if payload is None:
            return self._degrade(fallback, "extraction_failed", "no usable JSON after retry")

        batch = parse_suggestions(payload, category)
        result = merge_result(fallback, batch, session.accent_set)
        for issue in validate_result(result, session.palette):
            self.logger.debug("%s mapping issue (%s) for %s: %s", category, issue.severity, issue.key, issue.detail)
        self.logger.info(
            "Mapped %s: %d AI overrides, %d suggestions discarded, coverage %.0f%%",
            category,
            result.stats.ai_overrides,
            result.stats.discarded,
            result.stats.coverage * 100,
        )
        return result

    def _request_mappings(
        self,
        category: str,
        signals: Sequence[object],
        session: MappingSession,
        cancel: threading.Event | None,
    ) -> Optional[dict]:
        request = self.prompt_builder.build(category, signals, session, max_selectors=self.max_selectors)
        raw = self._complete_with_retry(request, model=self.model, temperature=self.temperature, cancel=cancel)
        outcome = extract_json(raw, REQUIRED_KEYS)
        if outcome.ok:
            return outcome.value

        self.logger.debug(
            "Extraction failed for %s (%s %s); asking for JSON only",
            category,
            outcome.failure.value if outcome.failure else "unknown",
            outcome.detail,
        )
        retry_model = self.model
        if self.extraction_model and looks_like_reasoning_model(self.model):
            retry_model = self.extraction_model
            self.logger.debug("Switching from reasoning model %s to %s for extraction", self.model, retry_model)
        json_request = self.prompt_builder.build_json_only(category, raw)
        raw = self._complete_with_retry(json_request, model=retry_model, temperature=0.0, cancel=cancel)
        outcome = extract_json(raw, REQUIRED_KEYS)
        if outcome.ok:
            return outcome.value
        self.logger.debug(
            "JSON-only retry for %s still unusable (%s)",
            category,
            outcome.failure.value if outcome.failure else "unknown",
        )
        return None

    def _complete_with_retry(
        self,
        request: PromptRequest,
        *,
        model: str,
        temperature: float,
        cancel: threading.Event | None,
    ) -> str:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._complete(request, model=model, temperature=temperature, cancel=cancel)
            except ProviderError as exc:
                if not self.retry_policy.should_retry(exc, attempt):
                    raise
                delay = self.retry_policy.delay(attempt)
                self.logger.debug(
                    "Transient failure for %s (attempt %d/%d): %s; retrying in %.1fs",
                    request.category,
                    attempt,
                    self.retry_policy.attempts,
                    exc,
                    delay,
                )
                if cancel is not None:
                    if cancel.wait(delay):
                        raise MappingCancelled() from exc
                elif delay:
                    time.sleep(delay)

    def _complete(
        self,
        request: PromptRequest,
        *,
        model: str,
        temperature: float,
        cancel: threading.Event | None,
    ) -> str:
        provider = self.provider
        assert provider is not None

        def call() -> str:
            try:
                return provider.complete(
                    request.system,
                    request.user,
                    model=model,
                    temperature=temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                )
            except ProviderError:
                raise
            except Exception as exc:
                # A backend that breaks the protocol counts as a fatal provider failure.
                name = getattr(provider, "name", "provider")
                raise ProviderFatalError(f"{name} raised {exc.__class__.__name__}: {exc}") from exc

        if cancel is None:
            return call()
        if cancel.is_set():
            raise MappingCancelled()

        # The call runs on a daemon thread so a cancelled request can be abandoned.
        outcome: Dict[str, object] = {}
        finished = threading.Event()

        def worker() -> None:
            try:
                outcome["value"] = call()
            except Exception as exc:  # re-raised on the calling thread
                outcome["error"] = exc
            finally:
                finished.set()

        thread = threading.Thread(target=worker, name=f"palettemap-{request.category}", daemon=True)
        thread.start()
        while not finished.wait(self.poll_interval):
            if cancel.is_set():
                self.logger.debug("Abandoning in-flight %s completion", request.category)
                raise MappingCancelled()
        if "error" in outcome:
            raise outcome["error"]  # type: ignore[misc]
        return outcome["value"]  # type: ignore[return-value]

    def _degrade(self, fallback: MappingResult, reason: str, detail: str) -> MappingResult:
        self.logger.warning(
            "AI mapping for %s degraded (%s): %s; using deterministic mapping",
            fallback.category,
            reason,
            detail,
        )
        return replace(fallback, degraded=True, degraded_reason=reason)


__all__ = ["MappingCancelled", "Orchestrator", "REQUIRED_KEYS", "looks_like_reasoning_model"]
