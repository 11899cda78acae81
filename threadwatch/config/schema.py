"""Configuration schema."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from threadwatch.watch.models import SCAN_INTERVAL_SECONDS, THREAD_MESSAGE_LIMIT, THREAD_TIMEOUT_SECONDS

# GUILDS | GUILD_MESSAGES | MESSAGE_CONTENT
DEFAULT_INTENTS = (1 << 0) | (1 << 9) | (1 << 15)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. You receive a Discord thread transcript, "
    "one message per line as '<timestamp>; <message id>; <author>; <text>'. "
    "Summarize it as a bug report: what happened, steps to reproduce, "
    "expected vs actual behaviour and any attachments referenced."
)


class Base(BaseModel):
    """Accepts both snake_case and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiscordConfig(Base):
    token: str = ""
    gateway_url: str = "wss://gateway.discord.gg/?v=10&encoding=json"
    api_base: str = "https://discord.com/api/v10"
    intents: int = DEFAULT_INTENTS


class LLMConfig(Base):
    api_key: str = ""
    api_base: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-4o-mini"
    fallback_models: list[str] = Field(default_factory=list)
    timeout: float = 20.0
    max_retries: int = 1
    max_tokens: int = 9123
    temperature: float = 0.7
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    models_file: str | None = None  # None = bundled models.yaml


class WatchConfig(Base):
    timeout_seconds: float = THREAD_TIMEOUT_SECONDS
    scan_interval_seconds: float = SCAN_INTERVAL_SECONDS
    message_limit: int = THREAD_MESSAGE_LIMIT

    @field_validator("timeout_seconds", "scan_interval_seconds")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("message_limit")
    @classmethod
    def _positive_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class Config(Base):
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    # purpose -> channel id; only threads under these channels get processed
    channels: dict[str, str] = Field(default_factory=dict)
    log_level: str = "INFO"

    @field_validator("channels", mode="before")
    @classmethod
    def _drop_unset_channels(cls, v: object) -> object:
        if isinstance(v, dict):
            return {k: str(cid) for k, cid in v.items() if cid}
        return v
