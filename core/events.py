"""
Match event types

A match is recorded as an append-only list of MatchEvent. Everything the
score and timer need (kind, player, minute, timestamp) is a typed field;
`meta` is a free extension slot nothing in the engine reads.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional
import uuid


class EventKind(str, Enum):
    KICKOFF = "Kickoff"
    GOAL_OWN = "GoalOwn"
    GOAL_OPPONENT = "GoalOpponent"
    PAUSE = "Pause"
    RESUME = "Resume"
    FULL_TIME = "FullTime"


class MatchStatus(str, Enum):
    """Durable cross-session status, persisted by the match collaborator."""
    SCHEDULED = "Scheduled"
    LIVE = "Live"
    COMPLETED = "Completed"


# Kinds that move the timer/phase state machine
TIMER_KINDS = frozenset({
    EventKind.KICKOFF,
    EventKind.PAUSE,
    EventKind.RESUME,
    EventKind.FULL_TIME,
})


@dataclass(frozen=True)
class MatchEvent:
    match_id: str
    kind: EventKind
    match_minute: int
    occurred_at_ms: int
    player_id: Optional[str] = None
    id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = field(default=None, compare=False)

    def with_id(self, event_id: str) -> "MatchEvent":
        return replace(self, id=event_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "match_id": self.match_id,
            "kind": self.kind.value,
            "player_id": self.player_id,
            "match_minute": self.match_minute,
            "occurred_at_ms": self.occurred_at_ms,
            "meta": self.meta,
        }


def new_event_id() -> str:
    return str(uuid.uuid4())


def minute_for(elapsed_seconds: int) -> int:
    """Playing minute (1-indexed) for an elapsed playing time."""
    return elapsed_seconds // 60 + 1
