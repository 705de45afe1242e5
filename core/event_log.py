"""
Event Log Store

In-memory, per-match ordered list of MatchEvent. It does no legality
checking; the controller decides what may be appended.
"""
from typing import Dict, List, Optional
import logging

from core.events import MatchEvent, new_event_id
from core.exceptions import StorageFailure
from core.locks import match_lock

logger = logging.getLogger(__name__)


class EventLogStore:
    """
    Ordered event storage for one or more matches.

    Responsibilities:
    - append: assign an id and store at the end of the match's log
    - remove_last: the only undo primitive, unconditional
    - list: all events of a match, ascending by occurred_at_ms

    Mutations are all-or-nothing: a StorageFailure leaves the log unchanged.
    """

    def __init__(self, max_events_per_match: Optional[int] = None):
        self._max_events = max_events_per_match
        self._logs: Dict[str, List[MatchEvent]] = {}

    def append(self, event: MatchEvent) -> MatchEvent:
        with match_lock(event.match_id):
            log = self._logs.setdefault(event.match_id, [])

            if self._max_events is not None and len(log) >= self._max_events:
                raise StorageFailure(
                    f"Event log for match {event.match_id} is full "
                    f"({self._max_events} events)"
                )

            stored = event if event.id else event.with_id(new_event_id())
            log.append(stored)

        logger.debug(f"Appended {stored.kind.value} {stored.id} to match {stored.match_id}")
        return stored

    def load(self, match_id: str, events: List[MatchEvent]) -> None:
        """Replace the log of a match with already-persisted events."""
        with match_lock(match_id):
            self._logs[match_id] = sorted(events, key=lambda e: e.occurred_at_ms)

    def remove_last(self, match_id: str) -> Optional[MatchEvent]:
        with match_lock(match_id):
            log = self._logs.get(match_id)
            if not log:
                return None
            removed = log.pop()

        logger.debug(f"Removed {removed.kind.value} {removed.id} from match {match_id}")
        return removed

    def last(self, match_id: str) -> Optional[MatchEvent]:
        log = self._logs.get(match_id)
        return log[-1] if log else None

    def list(self, match_id: str) -> List[MatchEvent]:
        with match_lock(match_id):
            # sorted() is stable, so equal timestamps keep append order
            return sorted(self._logs.get(match_id, []), key=lambda e: e.occurred_at_ms)

    def count(self, match_id: str) -> int:
        return len(self._logs.get(match_id, []))
