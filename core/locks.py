"""
Concurrency helpers

Two levels of serialization for a match:
- in-process: one re-entrant lock per match id, held around every event log
  mutation so appends stay in timestamp order
- database: row lock on the Match (SELECT ... FOR UPDATE) for the mirror
"""
from contextlib import contextmanager
from typing import Dict
import threading

from sqlalchemy.orm import Session, Query

from models import Match


_registry_lock = threading.Lock()
_match_locks: Dict[str, threading.RLock] = {}


def get_match_lock(match_id: str) -> threading.RLock:
    """
    Return the process-wide lock for a match, creating it on first use.
    """
    with _registry_lock:
        lock = _match_locks.get(match_id)
        if lock is None:
            lock = threading.RLock()
            _match_locks[match_id] = lock
        return lock


@contextmanager
def match_lock(match_id: str):
    """
    Serialize event log access for one match.

    Example:
        with match_lock(match_id):
            store.append(event)
    """
    lock = get_match_lock(match_id)
    with lock:
        yield


def release_match_lock(match_id: str) -> None:
    """Forget the lock of a match whose session was closed."""
    with _registry_lock:
        _match_locks.pop(match_id, None)


def with_match_lock(match_id: str, db: Session) -> Query:
    """
    Lock a Match row for the rest of the transaction.

    Args:
        match_id: Match id
        db: SQLAlchemy Session

    Returns:
        Query object (call .first() to get the row)

    Note:
        - nowait=False waits for a held lock instead of failing
        - SQLite ignores FOR UPDATE; the in-process lock covers that case
        - must run inside a transaction (commit or rollback afterwards)
    """
    return db.query(Match).filter(
        Match.id == match_id
    ).with_for_update(nowait=False)
