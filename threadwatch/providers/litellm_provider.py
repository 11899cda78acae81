"""LiteLLM provider implementation.

Includes model fallback: on timeout or error, retries once with the next
model in the fallback list before giving up with an error response.
"""

from __future__ import annotations

import asyncio
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from threadwatch.providers.base import LLMProvider, LLMResponse
from threadwatch.providers.registry import ModelRegistry

# Timeout for a single LLM call
LLM_CALL_TIMEOUT: float = 20.0


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM, routed through OpenRouter by default.

    Model fallback: on timeout or error, rotates to the next model in the
    fallback list and retries once. If the retry also fails, returns an
    error response (finish_reason="error") instead of raising.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "openai/gpt-4o-mini",
        registry: ModelRegistry | None = None,
        fallback_models: list[str] | None = None,
        timeout: float = LLM_CALL_TIMEOUT,
        max_retries: int = 1,
        extra_headers: dict[str, str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self._registry = registry or ModelRegistry.load()
        # Unknown models fail at startup, not on the first drained thread
        self._registry.provider_for(default_model)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}
        self._timeout = timeout
        self._max_retries = max_retries

        self._fallback_models = list(fallback_models or [])
        if self._fallback_models and self._fallback_models[0] != default_model:
            self._fallback_models.insert(0, default_model)
        for model in self._fallback_models:
            self._registry.provider_for(model)
        self._model_index = 0
        self._model_failures: dict[str, int] = {}

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        litellm.drop_params = True

    def get_default_model(self) -> str:
        return self.default_model

    # ── Model fallback rotation ──────────────────────────────────────

    def _get_current_model(self, requested_model: str) -> str:
        if not self._fallback_models:
            return requested_model
        return self._fallback_models[self._model_index % len(self._fallback_models)]

    def _rotate_model(self) -> None:
        if not self._fallback_models:
            return
        old_model = self._fallback_models[self._model_index]
        self._model_index = (self._model_index + 1) % len(self._fallback_models)
        logger.warning(f"LLM fallback: rotated from {old_model} → {self._fallback_models[self._model_index]}")

    def _record_failure(self, model: str) -> None:
        self._model_failures[model] = self._model_failures.get(model, 0) + 1

    # ── Calls ────────────────────────────────────────────────────────

    async def _attempt_chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Make a single LLM call with timeout. Raises on failure."""
        kwargs: dict[str, Any] = {
            "model": self._registry.resolve(model),
            "messages": messages,
            "max_tokens": max(1, max_tokens),
            "temperature": temperature,
            "num_retries": self._max_retries,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers

        response = await asyncio.wait_for(acompletion(**kwargs), timeout=self._timeout)
        return self._parse_response(response)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Send a chat completion request with one fallback retry.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model identifier; defaults to the provider's default model.
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.
        """
        requested = model or self.default_model
        attempts = [self._get_current_model(requested)]

        for attempt, current_model in enumerate(attempts):
            try:
                result = await self._attempt_chat(current_model, messages, max_tokens, temperature)
                self._model_failures[current_model] = 0
                return result
            except asyncio.TimeoutError:
                logger.warning(f"LLM timeout after {self._timeout}s on {current_model}")
                error = f"timeout on {current_model}"
            except Exception as e:
                logger.warning(f"LLM error on {current_model}: {e}")
                error = str(e)

            self._record_failure(current_model)
            self._rotate_model()
            fallback_model = self._get_current_model(requested)
            if attempt == 0 and fallback_model != current_model:
                logger.info(f"LLM fallback retry with {fallback_model}")
                attempts.append(fallback_model)

        return LLMResponse(content=f"Error calling LLM: {error}", finish_reason="error")

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]
        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            model=getattr(response, "model", "") or "",
            usage=usage,
        )
