import pytest

from core.events import EventKind, MatchEvent
from core.projection import (
    Score,
    compute_match_result,
    compute_score,
    compute_top_scorers,
    compute_tournament_stats,
)


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def own(player_id, at, match_id="m1"):
    return MatchEvent(
        match_id=match_id,
        kind=EventKind.GOAL_OWN,
        match_minute=1,
        occurred_at_ms=at,
        player_id=player_id,
    )


def opp(at, match_id="m1"):
    return MatchEvent(
        match_id=match_id,
        kind=EventKind.GOAL_OPPONENT,
        match_minute=1,
        occurred_at_ms=at,
    )


def timer(kind, at, match_id="m1"):
    return MatchEvent(match_id=match_id, kind=kind, match_minute=1, occurred_at_ms=at)


# ---------------------------------------------------------
# Score
# ---------------------------------------------------------

def test_empty_log_scores_zero():
    assert compute_score([]) == Score(own=0, opponent=0)


def test_score_counts_goals_only():
    events = [
        timer(EventKind.KICKOFF, 0),
        own("p1", 1),
        timer(EventKind.PAUSE, 2),
        timer(EventKind.RESUME, 3),
        opp(4),
        own("p2", 5),
        timer(EventKind.FULL_TIME, 6),
    ]

    assert compute_score(events) == Score(own=2, opponent=1)


def test_score_agrees_with_every_prefix():
    events = [own("p1", 1), opp(2), opp(3), own("p1", 4)]

    for n in range(len(events) + 1):
        prefix = events[:n]
        score = compute_score(prefix)
        assert score.own == sum(1 for e in prefix if e.kind == EventKind.GOAL_OWN)
        assert score.opponent == sum(1 for e in prefix if e.kind == EventKind.GOAL_OPPONENT)


@pytest.mark.parametrize("events, expected", [
    ([own("p1", 1)], "win"),
    ([], "draw"),
    ([own("p1", 1), opp(2)], "draw"),
    ([opp(1)], "loss"),
])
def test_match_result(events, expected):
    assert compute_match_result(events) == expected


# ---------------------------------------------------------
# Top scorers
# ---------------------------------------------------------

def test_top_scorers_empty():
    assert compute_top_scorers([]) == []


def test_top_scorers_across_matches():
    events = [
        own("A", 1, match_id="m1"),
        own("B", 2, match_id="m1"),
        own("A", 3, match_id="m1"),
        own("A", 4, match_id="m2"),
    ]

    scorers = compute_top_scorers(events)

    assert [s.player_id for s in scorers] == ["A", "B"]
    assert scorers[0].goals == 3
    assert scorers[0].match_ids == ("m1", "m2")
    assert [(m.match_id, m.goals) for m in scorers[0].matches] == [("m1", 2), ("m2", 1)]
    assert scorers[1].goals == 1
    assert scorers[1].match_ids == ("m1",)


def test_top_scorers_ties_keep_first_appearance():
    events = [own("B", 1), own("A", 2), own("C", 3), own("A", 4), own("B", 5)]

    scorers = compute_top_scorers(events)

    # A and B tie on 2; B scored first
    assert [s.player_id for s in scorers] == ["B", "A", "C"]


def test_top_scorers_ignore_other_events():
    events = [opp(1), timer(EventKind.KICKOFF, 0), own("p1", 2)]

    scorers = compute_top_scorers(events)

    assert len(scorers) == 1
    assert scorers[0].player_id == "p1"


def test_projections_are_repeatable():
    events = [own("A", 1), opp(2), own("B", 3)]

    assert compute_score(events) == compute_score(events)
    assert compute_top_scorers(events) == compute_top_scorers(events)


# ---------------------------------------------------------
# Tournament stats
# ---------------------------------------------------------

def test_tournament_stats_count_completed_matches_only():
    events_by_match = {
        "m1": [own("A", 1, "m1"), own("A", 2, "m1"), opp(3, "m1")],   # win
        "m2": [opp(4, "m2")],                                          # loss
        "m3": [own("B", 5, "m3"), opp(6, "m3")],                       # draw
        "m4": [own("A", 7, "m4")],                                     # still live
    }

    stats = compute_tournament_stats(events_by_match, ["m1", "m2", "m3"])

    assert stats.total_matches == 4
    assert stats.completed_matches == 3
    assert stats.goals_scored == 3
    assert stats.goals_conceded == 3
    assert (stats.wins, stats.draws, stats.losses) == (1, 1, 1)


def test_tournament_stats_count_repeated_completed_id_once():
    events_by_match = {
        "m1": [own("A", 1, "m1")],
        "m2": [opp(2, "m2")],
    }

    stats = compute_tournament_stats(events_by_match, ["m1", "m1", "m2"])

    assert stats.completed_matches == 2
    assert stats.goals_scored == 1
    assert stats.goals_conceded == 1
    assert (stats.wins, stats.draws, stats.losses) == (1, 0, 1)


def test_tournament_stats_empty():
    stats = compute_tournament_stats({}, [])

    assert stats.total_matches == 0
    assert stats.wins == 0
