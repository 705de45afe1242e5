"""
API request / response schemas
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from core.controller import LiveSnapshot
from core.events import EventKind, MatchEvent
from core.projection import Score, TopScorer, TournamentStats
from core.state_machine import Phase


class GoalSubmit(BaseModel):
    player_id: str = Field(..., min_length=1)


class ForegroundSignal(BaseModel):
    now_ms: Optional[int] = None


class ScoreResponse(BaseModel):
    own: int
    opponent: int

    @classmethod
    def from_score(cls, score: Score) -> "ScoreResponse":
        return cls(own=score.own, opponent=score.opponent)


class EventResponse(BaseModel):
    id: str
    match_id: str
    kind: EventKind
    player_id: Optional[str] = None
    match_minute: int
    occurred_at_ms: int
    meta: Optional[dict] = None

    @classmethod
    def from_event(cls, event: MatchEvent) -> "EventResponse":
        return cls(**event.to_dict())


class LiveStateResponse(BaseModel):
    match_id: str
    phase: Phase
    score: ScoreResponse
    elapsed_seconds: int
    current_minute: int
    clock: str
    events: List[EventResponse]
    warnings: List[str] = []

    @classmethod
    def from_snapshot(cls, snapshot: LiveSnapshot, warnings: Optional[List[str]] = None) -> "LiveStateResponse":
        return cls(
            match_id=snapshot.match_id,
            phase=snapshot.phase,
            score=ScoreResponse.from_score(snapshot.score),
            elapsed_seconds=snapshot.elapsed_seconds,
            current_minute=snapshot.current_minute,
            clock=snapshot.clock,
            events=[EventResponse.from_event(e) for e in snapshot.events],
            warnings=warnings or [],
        )


class MatchGoalsResponse(BaseModel):
    match_id: str
    goals: int


class TopScorerResponse(BaseModel):
    player_id: str
    goals: int
    match_ids: List[str]
    matches: List[MatchGoalsResponse]

    @classmethod
    def from_scorer(cls, scorer: TopScorer) -> "TopScorerResponse":
        return cls(
            player_id=scorer.player_id,
            goals=scorer.goals,
            match_ids=list(scorer.match_ids),
            matches=[MatchGoalsResponse(match_id=m.match_id, goals=m.goals) for m in scorer.matches],
        )


class TournamentStatsResponse(BaseModel):
    total_matches: int
    completed_matches: int
    goals_scored: int
    goals_conceded: int
    wins: int
    draws: int
    losses: int

    @classmethod
    def from_stats(cls, stats: TournamentStats) -> "TournamentStatsResponse":
        return cls(**stats.__dict__)
