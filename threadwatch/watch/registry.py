"""In-memory registry of observed threads.

Each thread carries two independent memberships:
    - pending: eligible for timeout-based draining, keyed on a debounce timestamp
    - tracked: known to the watcher, regardless of pending state

Both are set when a thread is first seen. They are dropped separately:
processing vacates pending only, an empty thread vacates both.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from threadwatch.watch.models import THREAD_TIMEOUT_SECONDS, ThreadEntry


@dataclass
class _ThreadRecord:
    channel_id: str | None
    added_at: float
    pending_since: float | None      # Debounce clock; None = not pending
    tracked: bool = True


class ThreadRegistry:
    """Thread tracking state shared by the handler, processor and scanner.

    All public methods take the registry lock. None of them raise for an
    unknown thread id: a miss is reported as None / False / no-op.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, _ThreadRecord] = {}  # thread_id -> record

    def now(self) -> float:
        return self._clock()

    # ── Mutations ────────────────────────────────────────────────────

    def add_thread(
        self,
        thread_id: str,
        channel_id: str | None,
        timestamp: float | None = None,
    ) -> None:
        """Start observing a thread (pending + tracked).

        Re-adding a known id overwrites its channel and timestamp instead
        of creating a second entry.
        """
        ts = self.now() if timestamp is None else timestamp
        with self._lock:
            if thread_id in self._records:
                logger.debug(f"Registry: thread {thread_id} re-added, resetting entry")
            self._records[thread_id] = _ThreadRecord(
                channel_id=channel_id,
                added_at=ts,
                pending_since=ts,
            )

    def update_timestamp(self, thread_id: str, timestamp: float | None = None) -> bool:
        """Reset the debounce clock of a pending thread.

        Returns False (and changes nothing) if the thread is not pending.
        """
        ts = self.now() if timestamp is None else timestamp
        with self._lock:
            record = self._records.get(thread_id)
            if record is None or record.pending_since is None:
                return False
            record.pending_since = ts
            return True

    def remove_from_pending(self, thread_id: str) -> None:
        with self._lock:
            record = self._records.get(thread_id)
            if record is None:
                return
            record.pending_since = None
            self._discard_if_orphaned(thread_id, record)

    def remove_from_tracked(self, thread_id: str) -> None:
        with self._lock:
            record = self._records.get(thread_id)
            if record is None:
                return
            record.tracked = False
            self._discard_if_orphaned(thread_id, record)

    def _discard_if_orphaned(self, thread_id: str, record: _ThreadRecord) -> None:
        if record.pending_since is None and not record.tracked:
            del self._records[thread_id]

    # ── Queries ──────────────────────────────────────────────────────

    def find_pending(self, thread_id: str) -> ThreadEntry | None:
        """Return the pending entry for a thread, or None."""
        with self._lock:
            record = self._records.get(thread_id)
            if record is None or record.pending_since is None:
                return None
            return ThreadEntry(thread_id, record.channel_id, record.pending_since)

    def is_pending(self, thread_id: str) -> bool:
        return self.find_pending(thread_id) is not None

    def is_tracked(self, thread_id: str) -> bool:
        with self._lock:
            record = self._records.get(thread_id)
            return record is not None and record.tracked

    def due_for_processing(self, timeout: float = THREAD_TIMEOUT_SECONDS) -> list[ThreadEntry]:
        """Pending threads idle for longer than `timeout` seconds, oldest first.

        Ties keep insertion order, so repeated calls agree on which
        thread comes first.
        """
        with self._lock:
            now = self.now()
            return [entry for entry in self._pending_sorted() if now - entry.timestamp > timeout]

    @property
    def pending(self) -> list[ThreadEntry]:
        """Snapshot of pending entries, oldest first."""
        with self._lock:
            return self._pending_sorted()

    @property
    def tracked(self) -> list[ThreadEntry]:
        """Snapshot of tracked entries in the order they were added."""
        with self._lock:
            return [
                ThreadEntry(tid, r.channel_id, r.added_at)
                for tid, r in self._records.items()
                if r.tracked
            ]

    def _pending_sorted(self) -> list[ThreadEntry]:
        entries = [
            ThreadEntry(tid, r.channel_id, r.pending_since)
            for tid, r in self._records.items()
            if r.pending_since is not None
        ]
        entries.sort(key=lambda e: e.timestamp)
        return entries

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for r in self._records.values() if r.pending_since is not None)
