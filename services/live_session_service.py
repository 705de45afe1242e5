"""
Live session registry

Keeps one LiveMatchController per match for the lifetime of the process.
A session is opened lazily on first use:
- Scheduled match: fresh session in READY
- Live / Completed match: restored from the persisted event log
"""
from typing import Callable, Dict, Optional
import logging
import threading

from sqlalchemy.orm import sessionmaker

from core.controller import LiveMatchController, wall_clock_ms
from core.event_log import EventLogStore
from core.locks import release_match_lock
from services.persistence import SqlMatchMirror
from services.roster_service import SqlRoster

logger = logging.getLogger(__name__)


class LiveSessionManager:
    def __init__(
        self,
        session_factory: sessionmaker,
        max_events_per_match: Optional[int] = None,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        self.mirror = SqlMatchMirror(session_factory)
        self.roster = SqlRoster(session_factory)
        self.store = EventLogStore(max_events_per_match=max_events_per_match)
        self._clock = clock
        self._controllers: Dict[str, LiveMatchController] = {}
        self._lock = threading.Lock()

    def get(self, match_id: str) -> LiveMatchController:
        """
        Return the open session of a match, opening it if needed.

        Raises:
            MatchNotFound: no such match in the database
        """
        with self._lock:
            controller = self._controllers.get(match_id)
            if controller is None:
                controller = self._open(match_id)
                self._controllers[match_id] = controller
            return controller

    def close(self, match_id: str) -> None:
        with self._lock:
            if self._controllers.pop(match_id, None) is not None:
                self.store.load(match_id, [])
                release_match_lock(match_id)
                logger.info(f"Closed live session for match {match_id}")

    def _open(self, match_id: str) -> LiveMatchController:
        match = self.mirror.load_match(match_id)
        events = self.mirror.load_events(match_id)

        controller = LiveMatchController.restore(
            match_id,
            events,
            started_at_ms=match.started_at_ms,
            status=match.status,
            store=self.store,
            persistence=self.mirror,
            roster=self.roster,
            clock=self._clock,
        )
        logger.info(f"Opened live session for match {match_id} ({match.status.value})")
        return controller


_manager: Optional[LiveSessionManager] = None
_manager_lock = threading.Lock()


def get_live_sessions() -> LiveSessionManager:
    """FastAPI dependency: the process-wide session registry"""
    global _manager
    with _manager_lock:
        if _manager is None:
            from database import SessionLocal, settings
            _manager = LiveSessionManager(
                SessionLocal,
                max_events_per_match=settings.max_events_per_match,
            )
    return _manager
