"""
Live capture API Endpoints

Responsibilities:
1. Forward user actions to the match's LiveMatchController
2. Return the fresh display snapshot after every action

Error mapping:
- MatchNotFound -> 404
- InvalidArgument -> 400
- InvalidTransition -> 409
- StorageFailure -> 507
- PersistenceFailure -> 200 with a warning (the action was applied)
"""
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
import logging

from core.controller import LiveMatchController
from core.exceptions import (
    InvalidArgument,
    InvalidTransition,
    MatchNotFound,
    PersistenceFailure,
    StorageFailure,
)
from schemas import ForegroundSignal, GoalSubmit, LiveStateResponse
from services.live_session_service import LiveSessionManager, get_live_sessions

router = APIRouter(prefix="/api/matches", tags=["live"])
logger = logging.getLogger(__name__)


def _run(
    match_id: str,
    sessions: LiveSessionManager,
    action: Callable[[LiveMatchController], object],
    now_ms: Optional[int] = None,
) -> LiveStateResponse:
    warnings = []
    try:
        controller = sessions.get(match_id)
        try:
            action(controller)
        except PersistenceFailure as e:
            logger.warning(f"Action on match {match_id} applied but not mirrored: {e}")
            warnings.append(str(e))
        return LiveStateResponse.from_snapshot(controller.snapshot(now_ms), warnings)

    except MatchNotFound:
        raise HTTPException(status_code=404, detail="Match not found")
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageFailure as e:
        raise HTTPException(status_code=507, detail=str(e))
    except Exception as e:
        logger.error(f"Live action failed for match {match_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{match_id}/live", response_model=LiveStateResponse)
def get_live_state(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    """Current score, clock, phase and event list for the display layer"""
    return _run(match_id, sessions, lambda c: None)


@router.post("/{match_id}/live/start", response_model=LiveStateResponse)
def start_match(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    """
    Kickoff (from Ready) or resume (from Paused)

    Kickoff also marks the match Live with its start time.
    """
    return _run(match_id, sessions, lambda c: c.start())


@router.post("/{match_id}/live/pause", response_model=LiveStateResponse)
def pause_match(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    return _run(match_id, sessions, lambda c: c.pause())


@router.post("/{match_id}/live/goals", response_model=LiveStateResponse)
def record_goal(
    match_id: str,
    goal: GoalSubmit,
    sessions: LiveSessionManager = Depends(get_live_sessions),
):
    return _run(match_id, sessions, lambda c: c.record_own_goal(goal.player_id))


@router.post("/{match_id}/live/opponent-goals", response_model=LiveStateResponse)
def record_opponent_goal(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    return _run(match_id, sessions, lambda c: c.record_opponent_goal())


@router.post("/{match_id}/live/undo", response_model=LiveStateResponse)
def undo_last_event(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    """
    Remove the most recent event

    The phase is not rolled back: undoing a Pause leaves the match paused.
    """
    return _run(match_id, sessions, lambda c: c.undo())


@router.post("/{match_id}/live/end", response_model=LiveStateResponse)
def end_match(match_id: str, sessions: LiveSessionManager = Depends(get_live_sessions)):
    """Final whistle; marks the match Completed with its end time."""
    return _run(match_id, sessions, lambda c: c.end())


@router.post("/{match_id}/live/foreground", response_model=LiveStateResponse)
def foreground(
    match_id: str,
    signal: ForegroundSignal,
    sessions: LiveSessionManager = Depends(get_live_sessions),
):
    """App returned from background: re-derive the clock from timestamps"""
    return _run(
        match_id, sessions, lambda c: c.on_foreground(signal.now_ms), now_ms=signal.now_ms
    )
