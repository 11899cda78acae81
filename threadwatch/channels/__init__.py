"""Event channels feeding the watcher."""

from threadwatch.channels.base import BaseChannel

__all__ = ["BaseChannel"]
