"""Thread summarizer: the generate callable handed to ThreadProcessor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from threadwatch.config.schema import DEFAULT_SYSTEM_PROMPT
from threadwatch.errors import GenerationError

if TYPE_CHECKING:
    from threadwatch.providers.base import LLMProvider

NO_RESPONSE = "Error: No response from model"


def normalize_content(content: Any) -> str:
    """Flatten LLM content to a string.

    Content may be a plain string or a list of parts (strings or
    {"text": ...} dicts); anything else is stringified.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("text") is not None:
                parts.append(str(part["text"]))
            else:
                parts.append(NO_RESPONSE)
        return "".join(parts)
    if content is None:
        return NO_RESPONSE
    return str(content)


class ThreadSummarizer:
    """Turns a thread transcript into a bug report via an LLM provider."""

    def __init__(
        self,
        provider: LLMProvider,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> None:
        self._provider = provider
        self._system_prompt = system_prompt
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def build_messages(self, transcript: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": transcript},
        ]

    async def __call__(self, transcript: str) -> str:
        response = await self._provider.chat(
            self.build_messages(transcript),
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        if response.is_error:
            raise GenerationError(normalize_content(response.content))
        logger.debug(f"Summarizer: {response.model or 'model'} returned {response.usage or 'no usage info'}")
        return normalize_content(response.content)
