"""Data models for thread watching.

Defines the tracked thread entry, handler/processor result types and
the timing constants used by the scanner.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ── Timing constants (seconds) ──────────────────────────────────────────
THREAD_TIMEOUT_SECONDS = 300         # 5 min without activity → due
SCAN_INTERVAL_SECONDS = 1.0          # Scanner tick period

# ── Fetch limits ────────────────────────────────────────────────────────
THREAD_MESSAGE_LIMIT = 100           # Max messages fetched per thread


@dataclass
class ThreadEntry:
    """A thread under observation."""

    thread_id: str
    channel_id: str | None           # Parent channel (allow-list checks)
    timestamp: float                 # Last activity, unix seconds


class HandleReason(str, Enum):
    """Why a message did or did not reset a timer."""
    BOT_MESSAGE = "bot_message"
    TIMER_RESET = "timer_reset"
    NOT_TRACKED = "not_tracked"


@dataclass
class HandleResult:
    """Outcome of handling one message-created event."""

    handled: bool
    reason: HandleReason
    thread_id: str | None = None


class ProcessError(str, Enum):
    """Terminal failure outcomes of processing a thread."""
    FETCH_FAILED = "fetch_failed"
    CHANNEL_NOT_ALLOWED = "channel_not_allowed"
    MESSAGES_FETCH_FAILED = "messages_fetch_failed"
    NO_MESSAGES = "no_messages"
    PROCESSING_FAILED = "processing_failed"


@dataclass
class ProcessResult:
    """Outcome of processing one thread."""

    success: bool
    thread_id: str
    error: ProcessError | None = None
    channel_name: str | None = None
    response: str | None = None

    @classmethod
    def failed(cls, thread_id: str, error: ProcessError) -> ProcessResult:
        return cls(success=False, thread_id=thread_id, error=error)
