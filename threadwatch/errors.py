"""Exception types raised by threadwatch collaborators."""


class ThreadWatchError(Exception):
    """Base class for all threadwatch errors."""


class ConfigError(ThreadWatchError):
    """Configuration file could not be read or validated."""


class StoreError(ThreadWatchError):
    """The conversation store could not serve a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationError(ThreadWatchError):
    """The text-generation backend failed to produce a response."""


class ModelNotFoundError(ThreadWatchError):
    """Requested model is not listed in the model registry."""
