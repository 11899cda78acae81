"""Model registry: which provider serves which model, from models.yaml."""

from __future__ import annotations

from pathlib import Path

import yaml

from threadwatch.errors import ConfigError, ModelNotFoundError

DEFAULT_MODELS_PATH = Path(__file__).with_name("models.yaml")

# provider name -> litellm model prefix
PROVIDER_PREFIXES: dict[str, str] = {
    "open_router": "openrouter",
}


class ModelRegistry:
    """Maps model names to the provider that serves them."""

    def __init__(self, models: dict[str, str]) -> None:
        self._models = models  # model -> provider

    @classmethod
    def load(cls, path: str | Path | None = None) -> ModelRegistry:
        models_path = Path(path) if path is not None else DEFAULT_MODELS_PATH
        try:
            data = yaml.safe_load(models_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load {models_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{models_path}: expected a provider -> models mapping")

        models: dict[str, str] = {}
        for provider, model_list in data.items():
            for model in model_list or []:
                models[str(model)] = str(provider)
        return cls(models)

    def __contains__(self, model: str) -> bool:
        return model in self._models

    def provider_for(self, model: str) -> str:
        try:
            return self._models[model]
        except KeyError:
            raise ModelNotFoundError(f"Model {model!r} not found in models") from None

    def resolve(self, model: str) -> str:
        """Return the litellm model string, e.g. 'openrouter/gpt-4o-mini'."""
        prefix = PROVIDER_PREFIXES.get(self.provider_for(model))
        if prefix and not model.startswith(f"{prefix}/"):
            return f"{prefix}/{model}"
        return model
