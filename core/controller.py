"""
Live Match Controller: the single entry point for live-capture actions

Responsibilities:
1. Check the action against the current phase (fail closed)
2. Append the event and move the timer state, all-or-nothing
3. Mirror the change to the persistence collaborator (fail open)

Rules:
- Legality and argument errors block the mutation entirely
- A failed mirror call never rolls back the in-memory log or phase; it is
  surfaced as PersistenceFailure carrying the applied result
- undo removes the last event only; it does not touch the phase
"""
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol, Tuple
import logging
import time

from core.event_log import EventLogStore
from core.events import EventKind, MatchEvent, MatchStatus, TIMER_KINDS
from core.exceptions import (
    InvalidArgument,
    InvalidTransition,
    PersistenceFailure,
)
from core.locks import match_lock
from core.projection import Score, compute_score
from core.state_machine import Action, Phase, TimerState, format_clock, is_allowed

logger = logging.getLogger(__name__)


class MatchPersistence(Protocol):
    """Best-effort remote mirror of the match and its event log."""

    def update_match_status(
        self,
        match_id: str,
        status: MatchStatus,
        started_at_ms: Optional[int] = None,
        ended_at_ms: Optional[int] = None,
    ) -> None: ...

    def append_event(self, match_id: str, event: MatchEvent) -> None: ...

    def delete_event(self, event_id: str) -> None: ...


class RosterLookup(Protocol):
    def get_player(self, match_id: str, player_id: str) -> Optional[Any]: ...


# Timer event that must directly precede a new Pause or Resume
TIMER_PREDECESSORS = {
    # None: session recovered from a persisted kickoff time without its log
    EventKind.PAUSE: frozenset({None, EventKind.KICKOFF, EventKind.RESUME}),
    EventKind.RESUME: frozenset({EventKind.PAUSE}),
}


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class LiveSnapshot:
    """Everything the display layer reads on a render tick."""
    match_id: str
    phase: Phase
    score: Score
    elapsed_seconds: int
    current_minute: int
    clock: str
    events: Tuple[MatchEvent, ...]


class LiveMatchController:
    """Live-capture session for one match"""

    def __init__(
        self,
        match_id: str,
        store: Optional[EventLogStore] = None,
        persistence: Optional[MatchPersistence] = None,
        roster: Optional[RosterLookup] = None,
        clock: Callable[[], int] = wall_clock_ms,
        timer: Optional[TimerState] = None,
    ):
        if not match_id:
            raise InvalidArgument("match_id is required")

        self.match_id = match_id
        self.store = store if store is not None else EventLogStore()
        self.persistence = persistence
        self.roster = roster
        self._clock = clock
        self._timer = timer or TimerState()

    @classmethod
    def restore(
        cls,
        match_id: str,
        events: Iterable[MatchEvent],
        started_at_ms: Optional[int] = None,
        status: Optional[MatchStatus] = None,
        **kwargs,
    ) -> "LiveMatchController":
        """
        Reopen a capture session from persisted state.

        The timer is replayed from the log's timer events. If the log holds
        none but the match is known to be live, the persisted kickoff time
        is used and elapsed time starts non-zero.
        """
        events = list(events)
        controller = cls(match_id, **kwargs)
        controller.store.load(match_id, events)

        if any(e.kind in TIMER_KINDS for e in events):
            controller._timer = TimerState.from_events(events)
        elif status == MatchStatus.LIVE and started_at_ms is not None:
            controller._timer = TimerState.recover_running(started_at_ms)

        logger.info(
            f"Restored match {match_id} in phase {controller.phase.value} "
            f"with {len(events)} events"
        )
        return controller

    # =========================================================
    # READ API
    # =========================================================

    @property
    def phase(self) -> Phase:
        return self._timer.phase

    @property
    def timer(self) -> TimerState:
        return self._timer

    @property
    def events(self) -> List[MatchEvent]:
        return self.store.list(self.match_id)

    def elapsed_seconds(self, now_ms: Optional[int] = None) -> int:
        return self._timer.elapsed_seconds(self._clock() if now_ms is None else now_ms)

    def current_minute(self, now_ms: Optional[int] = None) -> int:
        return self._timer.current_minute(self._clock() if now_ms is None else now_ms)

    def score(self) -> Score:
        return compute_score(self.events)

    def snapshot(self, now_ms: Optional[int] = None) -> LiveSnapshot:
        now_ms = self._clock() if now_ms is None else now_ms
        events = self.events
        elapsed = self._timer.elapsed_seconds(now_ms)
        return LiveSnapshot(
            match_id=self.match_id,
            phase=self.phase,
            score=compute_score(events),
            elapsed_seconds=elapsed,
            current_minute=self._timer.current_minute(now_ms),
            clock=format_clock(elapsed),
            events=tuple(events),
        )

    def on_foreground(self, now_ms: Optional[int] = None) -> LiveSnapshot:
        """Process came back from background; re-derive from timestamps."""
        snapshot = self.snapshot(now_ms)
        logger.debug(
            f"Match {self.match_id} resumed in foreground at "
            f"{snapshot.clock} ({snapshot.phase.value})"
        )
        return snapshot

    # =========================================================
    # ACTIONS
    # =========================================================

    def start(self) -> MatchEvent:
        """
        Kickoff from READY, resume from PAUSED.

        Raises:
            InvalidTransition: match is RUNNING or ENDED
            StorageFailure: event log refused the append
            PersistenceFailure: applied, but the mirror failed
        """
        with match_lock(self.match_id):
            self._require(Action.START)
            now_ms = self._next_timestamp()

            if self.phase == Phase.READY:
                event = self._append(EventKind.KICKOFF, 0, now_ms)
                self._timer = self._timer.start(now_ms)
                logger.info(f"Kickoff for match {self.match_id}")
                self._mirror(
                    event,
                    lambda p: p.append_event(self.match_id, event),
                    lambda p: p.update_match_status(
                        self.match_id, MatchStatus.LIVE, started_at_ms=now_ms
                    ),
                )
                return event

            self._require_timer_sequence(EventKind.RESUME, Action.START)
            minute = self._timer.current_minute(now_ms)
            event = self._append(EventKind.RESUME, minute, now_ms)
            self._timer = self._timer.start(now_ms)
            logger.info(f"Match {self.match_id} resumed in minute {minute}")
            self._mirror(event, lambda p: p.append_event(self.match_id, event))
            return event

    def pause(self) -> MatchEvent:
        with match_lock(self.match_id):
            self._require(Action.PAUSE)
            self._require_timer_sequence(EventKind.PAUSE, Action.PAUSE)
            now_ms = self._next_timestamp()

            minute = self._timer.current_minute(now_ms)
            event = self._append(EventKind.PAUSE, minute, now_ms)
            self._timer = self._timer.pause(now_ms)

            logger.info(f"Match {self.match_id} paused in minute {minute}")
            self._mirror(event, lambda p: p.append_event(self.match_id, event))
            return event

    def record_own_goal(self, player_id: str) -> MatchEvent:
        """
        Goal for the tracked team, credited to player_id.

        Raises:
            InvalidTransition: match is not RUNNING
            InvalidArgument: player_id empty or unknown to the roster
        """
        with match_lock(self.match_id):
            self._require_running("record a goal")

            if not player_id or not str(player_id).strip():
                raise InvalidArgument("player_id is required for an own goal")

            if self.roster is not None and self.roster.get_player(self.match_id, player_id) is None:
                raise InvalidArgument(
                    f"Player {player_id} is not on the roster of match {self.match_id}"
                )

            now_ms = self._next_timestamp()
            minute = self._timer.current_minute(now_ms)
            event = self._append(EventKind.GOAL_OWN, minute, now_ms, player_id=player_id)

            logger.info(f"Goal by {player_id} in minute {minute} (match {self.match_id})")
            self._mirror(event, lambda p: p.append_event(self.match_id, event))
            return event

    def record_opponent_goal(self) -> MatchEvent:
        with match_lock(self.match_id):
            self._require_running("record an opponent goal")

            now_ms = self._next_timestamp()
            minute = self._timer.current_minute(now_ms)
            event = self._append(EventKind.GOAL_OPPONENT, minute, now_ms)

            logger.info(f"Opponent goal in minute {minute} (match {self.match_id})")
            self._mirror(event, lambda p: p.append_event(self.match_id, event))
            return event

    def undo(self) -> MatchEvent:
        """
        Remove the most recent event, whatever its kind.

        The phase is left as it is: undoing a Pause keeps the match PAUSED.
        """
        with match_lock(self.match_id):
            if self.phase == Phase.READY or self.store.count(self.match_id) == 0:
                logger.warning(f"Rejected undo on match {self.match_id} ({self.phase.value})")
                raise InvalidTransition(self.phase, "undo")

            removed = self.store.remove_last(self.match_id)

            logger.info(f"Undid {removed.kind.value} {removed.id} (match {self.match_id})")
            self._mirror(removed, lambda p: p.delete_event(removed.id))
            return removed

    def end(self) -> MatchEvent:
        with match_lock(self.match_id):
            self._require(Action.END)
            now_ms = self._next_timestamp()

            minute = self._timer.current_minute(now_ms)
            event = self._append(EventKind.FULL_TIME, minute, now_ms)
            self._timer = self._timer.end(now_ms)

            logger.info(f"Full time for match {self.match_id} in minute {minute}")
            self._mirror(
                event,
                lambda p: p.append_event(self.match_id, event),
                lambda p: p.update_match_status(
                    self.match_id, MatchStatus.COMPLETED, ended_at_ms=now_ms
                ),
            )
            return event

    # =========================================================
    # INTERNALS
    # =========================================================

    def _require(self, action: Action) -> None:
        if not is_allowed(self.phase, action):
            logger.warning(
                f"Rejected {action.value} on match {self.match_id} ({self.phase.value})"
            )
            raise InvalidTransition(self.phase, action.value)

    def _require_timer_sequence(self, kind: EventKind, action: Action) -> None:
        """
        Pause and Resume must alternate in the log. After an undo the phase
        can disagree with the log, so the log decides.
        """
        last = next(
            (e for e in reversed(self.events) if e.kind in TIMER_KINDS), None
        )
        last_kind = last.kind if last is not None else None
        if last_kind not in TIMER_PREDECESSORS[kind]:
            logger.warning(
                f"Rejected {action.value} on match {self.match_id}: "
                f"last timer event is {last_kind.value if last_kind else None}"
            )
            raise InvalidTransition(self.phase, action.value)

    def _require_running(self, action: str) -> None:
        if self.phase != Phase.RUNNING:
            logger.warning(f"Rejected {action} on match {self.match_id} ({self.phase.value})")
            raise InvalidTransition(self.phase, action)

    def _next_timestamp(self) -> int:
        """
        Wall-clock now, bumped past the last event so the log stays strictly
        increasing even if the device clock steps backwards.
        """
        now_ms = self._clock()
        last = self.store.last(self.match_id)
        if last is not None and now_ms <= last.occurred_at_ms:
            return last.occurred_at_ms + 1
        return now_ms

    def _append(
        self,
        kind: EventKind,
        minute: int,
        now_ms: int,
        player_id: Optional[str] = None,
    ) -> MatchEvent:
        return self.store.append(
            MatchEvent(
                match_id=self.match_id,
                kind=kind,
                match_minute=minute,
                occurred_at_ms=now_ms,
                player_id=player_id,
            )
        )

    def _mirror(self, result: MatchEvent, *calls: Callable[[MatchPersistence], None]) -> None:
        if self.persistence is None:
            return

        errors = []
        for call in calls:
            try:
                call(self.persistence)
            except Exception as e:
                logger.error(
                    f"Persistence mirror failed for match {self.match_id}: {e}",
                    exc_info=True,
                )
                errors.append(e)

        if errors:
            raise PersistenceFailure(
                f"Remote copy of match {self.match_id} may be stale: {errors[0]}",
                result=result,
            )
