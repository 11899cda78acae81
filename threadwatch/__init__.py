"""threadwatch - debounce Discord threads and hand them to an LLM once they go quiet."""

__version__ = "0.1.0"
