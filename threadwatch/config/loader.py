"""Load Config from config.json + environment."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from threadwatch.config.schema import Config
from threadwatch.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_ENV_PATH = Path(".env")

# Flat keys like "oxiOneBugsChannelId" are folded into channels["oxiOneBugs"]
_CHANNEL_KEY_SUFFIX = "ChannelId"

# Secrets read from the environment (or .env)
ENV_DISCORD_TOKEN = "BOT_TOKEN"
ENV_LLM_API_KEY = "OPEN_ROUTER_API_KEY"


def _fold_channel_keys(data: dict[str, Any]) -> dict[str, Any]:
    channels = dict(data.get("channels") or {})
    rest: dict[str, Any] = {}
    for key, value in data.items():
        if key.endswith(_CHANNEL_KEY_SUFFIX) and len(key) > len(_CHANNEL_KEY_SUFFIX):
            channels[key[: -len(_CHANNEL_KEY_SUFFIX)]] = value
        else:
            rest[key] = value

    missing = [k for k, v in channels.items() if not v]
    if missing:
        logger.warning(f"Config: no channel id set for {', '.join(missing)}, ignoring")
    rest["channels"] = channels
    return rest


def load_config(path: str | Path | None = None, env_file: str | Path | None = None) -> Config:
    """Build the runtime Config.

    A missing config file is not an error: defaults apply and secrets
    come from the environment only.
    """
    env_path = Path(env_file) if env_file is not None else DEFAULT_ENV_PATH
    if env_path.exists():
        load_dotenv(env_path)

    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top level must be an object")
    else:
        logger.info(f"Config: {config_path} not found, using defaults")

    try:
        config = Config.model_validate(_fold_channel_keys(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e

    if token := os.environ.get(ENV_DISCORD_TOKEN):
        config.discord.token = token
    if api_key := os.environ.get(ENV_LLM_API_KEY):
        config.llm.api_key = api_key

    if not config.channels:
        logger.warning("Config: no allowed channels configured, no thread will be processed")

    return config
