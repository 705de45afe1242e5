"""
Score / stat projections

Pure functions over event lists. There are no stored counters anywhere:
score and scorer tables are recomputed from the log on every call, so an
undo can never leave them out of sync.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from core.events import EventKind, MatchEvent


@dataclass(frozen=True)
class Score:
    own: int = 0
    opponent: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"own": self.own, "opponent": self.opponent}


@dataclass(frozen=True)
class MatchGoals:
    match_id: str
    goals: int


@dataclass(frozen=True)
class TopScorer:
    player_id: str
    goals: int
    match_ids: Tuple[str, ...] = ()
    matches: Tuple[MatchGoals, ...] = ()


@dataclass(frozen=True)
class TournamentStats:
    total_matches: int = 0
    completed_matches: int = 0
    goals_scored: int = 0
    goals_conceded: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0


def compute_score(events: Iterable[MatchEvent]) -> Score:
    own = 0
    opponent = 0
    for event in events:
        if event.kind == EventKind.GOAL_OWN:
            own += 1
        elif event.kind == EventKind.GOAL_OPPONENT:
            opponent += 1
    return Score(own=own, opponent=opponent)


def compute_top_scorers(events: Iterable[MatchEvent]) -> List[TopScorer]:
    """
    Group own goals by player, most goals first.

    Ties keep the order in which players first scored in the given event
    stream. Events may span several matches (tournament view); each scorer
    then lists the distinct matches scored in, in first-goal order.
    """
    # player_id -> {match_id: goals}; dicts keep insertion order
    tally: Dict[str, Dict[str, int]] = {}

    for event in events:
        if event.kind != EventKind.GOAL_OWN or not event.player_id:
            continue
        per_match = tally.setdefault(event.player_id, {})
        per_match[event.match_id] = per_match.get(event.match_id, 0) + 1

    scorers = [
        TopScorer(
            player_id=player_id,
            goals=sum(per_match.values()),
            match_ids=tuple(per_match),
            matches=tuple(MatchGoals(match_id=m, goals=g) for m, g in per_match.items()),
        )
        for player_id, per_match in tally.items()
    ]

    # sort() is stable: equal goal counts stay in first-appearance order
    scorers.sort(key=lambda s: s.goals, reverse=True)
    return scorers


def compute_match_result(events: Iterable[MatchEvent]) -> str:
    """'win', 'draw' or 'loss' from the tracked team's point of view."""
    score = compute_score(events)
    if score.own > score.opponent:
        return "win"
    if score.own == score.opponent:
        return "draw"
    return "loss"


def compute_tournament_stats(
    events_by_match: Mapping[str, Sequence[MatchEvent]],
    completed_match_ids: Iterable[str],
) -> TournamentStats:
    """
    Aggregate results over a tournament.

    Only completed matches count towards goals and results; every key of
    events_by_match counts towards total_matches.
    """
    # dict.fromkeys drops repeated ids and keeps their order
    completed = [m for m in dict.fromkeys(completed_match_ids) if m in events_by_match]

    goals_scored = goals_conceded = 0
    results = {"win": 0, "draw": 0, "loss": 0}

    for match_id in completed:
        events = events_by_match[match_id]
        score = compute_score(events)
        goals_scored += score.own
        goals_conceded += score.opponent
        results[compute_match_result(events)] += 1

    return TournamentStats(
        total_matches=len(events_by_match),
        completed_matches=len(completed),
        goals_scored=goals_scored,
        goals_conceded=goals_conceded,
        wins=results["win"],
        draws=results["draw"],
        losses=results["loss"],
    )
