"""
HotLedger Event Log

Append-only record of committed ledger effects, in commit order.
Rejected operations never produce events.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(str, Enum):
    TRANSFER = "Transfer"
    REDIRECT = "Redirect"
    EMERGENCY_RECIPIENT_SET = "EmergencyRecipientSet"
    BLACKLISTED = "Blacklisted"
    EMERGENCY_WITHDRAW = "EmergencyWithdraw"


@dataclass
class LedgerEvent:
    """A single committed effect."""
    event_type: EventType
    args: Dict[str, Any] = field(default_factory=dict)
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        args = {k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
                for k, v in self.args.items()}
        return {"seq": self.seq, "event": self.event_type.value, "args": args}


class EventLog(ABC):
    """Abstract interface for event storage."""

    @abstractmethod
    def append(self, events: List[LedgerEvent]) -> None:
        """Append a batch of events belonging to one committed operation."""
        pass

    @abstractmethod
    def query(self, event_type: Optional[EventType] = None) -> List[LedgerEvent]:
        pass


class InMemoryEventLog(EventLog):
    """
    In-memory event log.

    Not persistent. Oldest events are trimmed past `max_events`.
    """

    def __init__(self, max_events: int = 10000):
        self._events: List[LedgerEvent] = []
        self._lock = threading.Lock()
        self._max_events = max_events
        self._seq = 0

    def append(self, events: List[LedgerEvent]) -> None:
        with self._lock:
            for event in events:
                self._seq += 1
                event.seq = self._seq
                self._events.append(event)
            if len(self._events) > self._max_events:
                self._events = self._events[-self._max_events:]

    def query(self, event_type: Optional[EventType] = None) -> List[LedgerEvent]:
        with self._lock:
            events = self._events[:]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events
