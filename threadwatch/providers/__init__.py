"""LLM providers."""

from threadwatch.providers.base import LLMProvider, LLMResponse
from threadwatch.providers.registry import ModelRegistry

__all__ = ["LLMProvider", "LLMResponse", "ModelRegistry"]
