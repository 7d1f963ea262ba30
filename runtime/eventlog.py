from typing import List, Optional, Tuple
from engine.model import Event

class EventLog:
    """Append-only history of what the player did during a session."""

    def __init__(self, max_events: int = 10_000):
        self._log: List[Event] = []
        self._dropped = 0
        self.max_events = max_events

    def append_many(self, evts: List[Event]) -> Tuple[int, int]:
        """Append events and return their (start_offset, end_offset)."""
        start = self._dropped + len(self._log)
        self._log.extend(evts)
        overflow = len(self._log) - self.max_events
        if overflow > 0:
            del self._log[:overflow]
            self._dropped += overflow
        return start, start + len(evts) - 1

    def since(self, offset: int, limit: int = 1000,
              kind: Optional[str] = None) -> Tuple[List[Event], int]:
        """Page through events from an absolute offset, optionally keeping one kind.

        The returned offset is where the next page starts; events that were
        trimmed off the front are skipped silently.
        """
        first = max(0, offset - self._dropped)
        chunk = self._log[first: first + limit]
        next_offset = self._dropped + first + len(chunk)
        if kind is not None:
            chunk = [e for e in chunk if e.kind == kind]
        return chunk, next_offset

    def __len__(self) -> int:
        return self._dropped + len(self._log)
