"""Configuration."""

from threadwatch.config.loader import load_config
from threadwatch.config.schema import Config, DiscordConfig, LLMConfig, WatchConfig

__all__ = ["Config", "DiscordConfig", "LLMConfig", "WatchConfig", "load_config"]
