"""Thread watching: debounce per-thread activity and drain quiet threads.

Architecture:
    - ThreadRegistry (registry.py): pending/tracked membership per thread
    - handle_message_create (handler.py): timer reset on new activity
    - format_thread_messages (formatter.py): transcript builder
    - ThreadProcessor (processor.py): fetch → allow-list → messages → LLM
    - TimeoutScanner (scanner.py): periodic oldest-first drain
"""

from threadwatch.watch.formatter import format_thread_messages
from threadwatch.watch.handler import handle_message_create
from threadwatch.watch.models import (
    HandleReason,
    HandleResult,
    ProcessError,
    ProcessResult,
    ThreadEntry,
)
from threadwatch.watch.processor import ThreadProcessor
from threadwatch.watch.registry import ThreadRegistry
from threadwatch.watch.scanner import TimeoutScanner

__all__ = [
    "HandleReason",
    "HandleResult",
    "ProcessError",
    "ProcessResult",
    "ThreadEntry",
    "ThreadProcessor",
    "ThreadRegistry",
    "TimeoutScanner",
    "format_thread_messages",
    "handle_message_create",
]
