"""
SQL persistence mirror

Implements the controller's MatchPersistence collaborator on SQLAlchemy.
Every call opens its own session and commits or rolls back on its own, so
one failed mirror write never leaves a half-applied transaction behind.
"""
from contextlib import contextmanager
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session, sessionmaker

from core.events import MatchEvent, MatchStatus
from core.exceptions import MatchNotFound
from core.locks import with_match_lock
from database import transactional
from models import Match, MatchEventRecord

logger = logging.getLogger(__name__)


class SqlMatchMirror:
    """Best-effort durable copy of a live match"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    # ---------------------------------------------------------
    # MatchPersistence
    # ---------------------------------------------------------

    def update_match_status(
        self,
        match_id: str,
        status: MatchStatus,
        started_at_ms: Optional[int] = None,
        ended_at_ms: Optional[int] = None,
    ) -> None:
        with self._session() as db:
            self._update_status(db, match_id, status, started_at_ms, ended_at_ms)

    def append_event(self, match_id: str, event: MatchEvent) -> None:
        with self._session() as db:
            self._insert_event(db, match_id, event)

    def delete_event(self, event_id: str) -> None:
        with self._session() as db:
            self._delete_event(db, event_id)

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------

    def load_match(self, match_id: str) -> Match:
        with self._session() as db:
            match = db.query(Match).filter(Match.id == match_id).first()
            if not match:
                raise MatchNotFound(match_id)
            db.expunge(match)
            return match

    def load_events(self, match_id: str) -> List[MatchEvent]:
        with self._session() as db:
            return load_match_events(db, match_id)

    # ---------------------------------------------------------
    # Transactions
    # ---------------------------------------------------------

    @transactional
    def _update_status(
        self,
        db: Session,
        match_id: str,
        status: MatchStatus,
        started_at_ms: Optional[int],
        ended_at_ms: Optional[int],
    ) -> Match:
        match = with_match_lock(match_id, db).first()
        if not match:
            raise MatchNotFound(match_id)

        match.status = status
        if started_at_ms is not None:
            match.started_at_ms = started_at_ms
        if ended_at_ms is not None:
            match.ended_at_ms = ended_at_ms

        logger.info(f"Match {match_id} persisted as {status.value}")
        return match

    @transactional
    def _insert_event(self, db: Session, match_id: str, event: MatchEvent) -> MatchEventRecord:
        if event.match_id != match_id:
            raise ValueError(
                f"Event {event.id} belongs to match {event.match_id}, not {match_id}"
            )

        match = with_match_lock(match_id, db).first()
        if not match:
            raise MatchNotFound(match_id)

        record = MatchEventRecord.from_event(event)
        db.add(record)
        return record

    @transactional
    def _delete_event(self, db: Session, event_id: str) -> bool:
        record = db.query(MatchEventRecord).filter(MatchEventRecord.id == event_id).first()
        if not record:
            # Already gone remotely, the mirror is in the desired state
            logger.warning(f"Event {event_id} not found in mirror, nothing to delete")
            return False

        db.delete(record)
        return True


def load_match_events(db: Session, match_id: str) -> List[MatchEvent]:
    """All persisted events of a match, ascending by occurred_at_ms."""
    rows = (
        db.query(MatchEventRecord)
        .filter(MatchEventRecord.match_id == match_id)
        .order_by(MatchEventRecord.occurred_at_ms)
        .all()
    )
    return [row.to_event() for row in rows]


def load_tournament_events(db: Session, tournament_id: str) -> Dict[str, List[MatchEvent]]:
    """
    Events of every match in a tournament, keyed by match id.

    Matches without events are present with an empty list so they still
    count towards the tournament's match total.
    """
    match_ids = [
        m.id for m in db.query(Match.id).filter(Match.tournament_id == tournament_id).all()
    ]
    events_by_match: Dict[str, List[MatchEvent]] = {m: [] for m in match_ids}
    if not match_ids:
        return events_by_match

    rows = (
        db.query(MatchEventRecord)
        .filter(MatchEventRecord.match_id.in_(match_ids))
        .order_by(MatchEventRecord.occurred_at_ms)
        .all()
    )
    for row in rows:
        events_by_match[row.match_id].append(row.to_event())
    return events_by_match
