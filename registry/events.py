"""
DSS Collection - Event Log

This module provides the append-only audit log of state changes emitted by the
registry, the token factory and the collection stores. Each state change appends
exactly one event; external indexers consume them through subscribers or the
optional JSON-lines sink.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Union

from .clock import Clock, SystemClock


class EventType(str, Enum):
    """Event type enumeration."""
    GROUP_CREATED = "CollectionGroupCreated"
    GROUP_CLOSED = "CollectionGroupClosed"
    EDITION_ADDED = "EditionAddedToCollectionGroup"
    MINTED = "Minted"
    BURNED = "Burned"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"


@dataclass(frozen=True)
class Event:
    """A single emitted event."""
    sequence: int
    event_type: EventType
    timestamp: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        data = asdict(self)
        data['event_type'] = self.event_type.value
        return data


class EventLog:
    """Thread-safe append-only event log with subscribers."""

    def __init__(self, path: Optional[Union[str, Path]] = None,
                 clock: Optional[Clock] = None, deferred: bool = False):
        """
        Initialize event log.

        Args:
            path: Optional JSON-lines file every event is appended to
            clock: Timestamp source for events; defaults to the wall clock
            deferred: Hold sink writes until flush() instead of writing on emit
        """
        self.logger = logging.getLogger(__name__)
        self.path = Path(path) if path else None
        self.clock = clock or SystemClock()
        self.deferred = deferred
        self._events: List[Event] = []
        self._pending: List[Event] = []
        self._subscribers: List[Callable[[Event], None]] = []
        self._lock = RLock()
        self._next_sequence = 1

        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Continue numbering after whatever earlier runs appended
            self._next_sequence = self._count_sink_lines() + 1

    def _count_sink_lines(self) -> int:
        if not self.path.exists():
            return 0
        with open(self.path, 'rb') as f:
            return sum(1 for line in f if line.strip())

    def _write_sink(self, events: List[Event]) -> None:
        with open(self.path, 'a', encoding='utf-8') as f:
            for event in events:
                f.write(json.dumps(event.to_dict(), default=str) + "\n")

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        """Register a callback invoked for every emitted event."""
        with self._lock:
            self._subscribers.append(callback)

    def emit(self, event_type: EventType, **payload: Any) -> Event:
        """Append an event and notify subscribers."""
        with self._lock:
            event = Event(
                sequence=self._next_sequence,
                event_type=event_type,
                timestamp=self.clock.now(),
                payload=dict(payload),
            )
            self._next_sequence += 1
            self._events.append(event)

            if self.path:
                if self.deferred:
                    self._pending.append(event)
                else:
                    self._write_sink([event])

            for callback in self._subscribers:
                try:
                    callback(event)
                except Exception as e:
                    # Subscriber failures never affect the emitting operation
                    self.logger.warning(f"Event subscriber failed on {event_type.value}: {e}")

            return event

    def flush(self) -> int:
        """Write held events to the sink; returns how many were written."""
        with self._lock:
            pending, self._pending = self._pending, []
            if pending:
                self._write_sink(pending)
            return len(pending)

    def discard(self) -> int:
        """Forget held events without writing them and rewind the sequence."""
        with self._lock:
            dropped = len(self._pending)
            if dropped:
                first = self._pending[0].sequence
                self._events = [e for e in self._events if e.sequence < first]
                self._next_sequence = first
                self._pending = []
                self.logger.debug(f"Discarded {dropped} unsaved events")
            return dropped

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def events(self, event_type: Optional[EventType] = None) -> List[Event]:
        """Return a copy of the log, optionally filtered by type."""
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [e for e in self._events if e.event_type == event_type]

    def last(self) -> Optional[Event]:
        """Return the most recent event."""
        with self._lock:
            return self._events[-1] if self._events else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
