"""
Read-only projections over persisted events

Responsibilities:
1. Persisted event log of a match
2. Tournament top scorers and results summary
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from core.events import MatchStatus
from core.projection import compute_top_scorers, compute_tournament_stats
from database import get_db
from models import Match
from schemas import EventResponse, TopScorerResponse, TournamentStatsResponse
from services.persistence import load_match_events, load_tournament_events

router = APIRouter(prefix="/api", tags=["stats"])
logger = logging.getLogger(__name__)


@router.get("/matches/{match_id}/events", response_model=List[EventResponse])
def get_match_events(match_id: str, db: Session = Depends(get_db)):
    """Persisted events of a match, oldest first"""
    match = db.query(Match).filter(Match.id == match_id).first()
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    return [EventResponse.from_event(e) for e in load_match_events(db, match_id)]


@router.get("/tournaments/{tournament_id}/top-scorers", response_model=List[TopScorerResponse])
def get_top_scorers(tournament_id: str, db: Session = Depends(get_db)):
    """
    Top scorers over all matches of a tournament

    Ordering:
        most goals first, ties in order of each player's first goal
    """
    events_by_match = load_tournament_events(db, tournament_id)

    # Chronological merge so tie-breaks follow the real order of goals
    all_events = sorted(
        (e for events in events_by_match.values() for e in events),
        key=lambda e: e.occurred_at_ms,
    )
    scorers = compute_top_scorers(all_events)

    logger.debug(f"Tournament {tournament_id}: {len(scorers)} scorers")
    return [TopScorerResponse.from_scorer(s) for s in scorers]


@router.get("/tournaments/{tournament_id}/stats", response_model=TournamentStatsResponse)
def get_tournament_stats(tournament_id: str, db: Session = Depends(get_db)):
    events_by_match = load_tournament_events(db, tournament_id)
    completed_ids = [
        m.id
        for m in db.query(Match.id).filter(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.COMPLETED,
        ).all()
    ]

    stats = compute_tournament_stats(events_by_match, completed_ids)
    return TournamentStatsResponse.from_stats(stats)
