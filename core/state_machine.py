"""
Timer / Phase state machine

Phase transitions:
    READY   --start--> RUNNING   (kickoff)
    RUNNING --pause--> PAUSED
    PAUSED  --start--> RUNNING   (resume)
    RUNNING --end----> ENDED     (terminal)

Elapsed playing time is never counted by a ticker. It is derived on demand
from three numbers: the kickoff timestamp, the total paused time and the
start of the current pause, so a suspended process picks up the right
value the moment it is asked again.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from core.events import EventKind, MatchEvent, minute_for
from core.exceptions import InvalidTransition


class Phase(str, Enum):
    READY = "Ready"
    RUNNING = "Running"
    PAUSED = "Paused"
    ENDED = "Ended"


class Action(str, Enum):
    START = "start"
    PAUSE = "pause"
    END = "end"


ALLOWED_ACTIONS: Dict[Phase, FrozenSet[Action]] = {
    Phase.READY: frozenset({Action.START}),
    Phase.RUNNING: frozenset({Action.PAUSE, Action.END}),
    Phase.PAUSED: frozenset({Action.START}),
    Phase.ENDED: frozenset(),
}


def is_allowed(phase: Phase, action: Action) -> bool:
    return action in ALLOWED_ACTIONS[phase]


@dataclass(frozen=True)
class TimerState:
    """
    Immutable clock state of one capture session.

    Paused time is kept in milliseconds so the frozen value at pause and the
    value right after resume agree to the second.
    """
    phase: Phase = Phase.READY
    started_at_ms: Optional[int] = None
    paused_ms: int = 0
    pause_began_at_ms: Optional[int] = None

    # ---------------------------------------------------------
    # Transitions
    # ---------------------------------------------------------

    def start(self, now_ms: int) -> "TimerState":
        """Kickoff from READY, resume from PAUSED."""
        self._require(Action.START)

        if self.phase == Phase.READY:
            return TimerState(phase=Phase.RUNNING, started_at_ms=now_ms)

        pause_ms = max(0, now_ms - self.pause_began_at_ms)
        return replace(
            self,
            phase=Phase.RUNNING,
            paused_ms=self.paused_ms + pause_ms,
            pause_began_at_ms=None,
        )

    def pause(self, now_ms: int) -> "TimerState":
        self._require(Action.PAUSE)
        return replace(self, phase=Phase.PAUSED, pause_began_at_ms=now_ms)

    def end(self, now_ms: int) -> "TimerState":
        self._require(Action.END)
        # Keep the clock frozen at the final whistle
        return replace(self, phase=Phase.ENDED, pause_began_at_ms=now_ms)

    def _require(self, action: Action) -> None:
        if not is_allowed(self.phase, action):
            raise InvalidTransition(self.phase, action.value)

    # ---------------------------------------------------------
    # Derived time
    # ---------------------------------------------------------

    @property
    def accumulated_paused_seconds(self) -> int:
        return self.paused_ms // 1000

    def elapsed_seconds(self, now_ms: int) -> int:
        if self.started_at_ms is None:
            return 0

        if self.pause_began_at_ms is not None:
            reference = self.pause_began_at_ms
        else:
            reference = now_ms

        played_ms = reference - self.started_at_ms - self.paused_ms
        # A clock that jumped behind kickoff reads as zero, never negative
        return max(0, played_ms // 1000)

    def current_minute(self, now_ms: int) -> int:
        return minute_for(self.elapsed_seconds(now_ms))

    # ---------------------------------------------------------
    # Recovery
    # ---------------------------------------------------------

    @classmethod
    def recover_running(cls, started_at_ms: int) -> "TimerState":
        """
        Re-enter a match that is already live when only its persisted
        kickoff time is known. Elapsed time is non-zero from the start.
        """
        return cls(phase=Phase.RUNNING, started_at_ms=started_at_ms)

    @classmethod
    def from_events(cls, events: Iterable[MatchEvent]) -> "TimerState":
        """
        Rebuild the clock by replaying the timer events of a log.

        Events that would be illegal in the replayed phase (e.g. a Pause
        whose Resume was undone) are skipped rather than failing recovery.
        """
        state = cls()
        for event in sorted(events, key=lambda e: e.occurred_at_ms):
            if event.kind == EventKind.KICKOFF and state.phase == Phase.READY:
                state = state.start(event.occurred_at_ms)
            elif event.kind == EventKind.PAUSE and state.phase == Phase.RUNNING:
                state = state.pause(event.occurred_at_ms)
            elif event.kind == EventKind.RESUME and state.phase == Phase.PAUSED:
                state = state.start(event.occurred_at_ms)
            elif event.kind == EventKind.FULL_TIME and state.phase == Phase.RUNNING:
                state = state.end(event.occurred_at_ms)
        return state


def format_clock(seconds: int) -> str:
    """MM:SS display string, minutes are not wrapped at 60."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"
