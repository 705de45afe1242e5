"""
ORM models for the persisted mirror

Only what live capture reads or writes is modelled here: the match row,
its event rows and the roster players used for goal attribution.
"""
from sqlalchemy import (
    Boolean,
    BigInteger,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import relationship
import uuid

from database import Base
from core.events import EventKind, MatchEvent, MatchStatus


def _uuid() -> str:
    return str(uuid.uuid4())


class Match(Base):
    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=_uuid)
    tournament_id = Column(String(36), nullable=True, index=True)
    team_id = Column(String(36), nullable=False, index=True)
    opponent_name = Column(String(128), nullable=False)
    duration_min = Column(Integer, nullable=False, default=20)
    status = Column(Enum(MatchStatus), nullable=False, default=MatchStatus.SCHEDULED)
    started_at_ms = Column(BigInteger, nullable=True)
    ended_at_ms = Column(BigInteger, nullable=True)

    events = relationship(
        "MatchEventRecord",
        back_populates="match",
        order_by="MatchEventRecord.occurred_at_ms",
        cascade="all, delete-orphan",
    )


class MatchEventRecord(Base):
    __tablename__ = "match_events"
    __table_args__ = (
        Index("ix_match_events_match_time", "match_id", "occurred_at_ms"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    match_id = Column(String(36), ForeignKey("matches.id"), nullable=False)
    kind = Column(Enum(EventKind), nullable=False)
    player_id = Column(String(36), nullable=True)
    match_minute = Column(Integer, nullable=False)
    occurred_at_ms = Column(BigInteger, nullable=False)
    meta = Column(JSON, nullable=True)

    match = relationship("Match", back_populates="events")

    @classmethod
    def from_event(cls, event: MatchEvent) -> "MatchEventRecord":
        return cls(
            id=event.id,
            match_id=event.match_id,
            kind=event.kind,
            player_id=event.player_id,
            match_minute=event.match_minute,
            occurred_at_ms=event.occurred_at_ms,
            meta=event.meta,
        )

    def to_event(self) -> MatchEvent:
        return MatchEvent(
            id=self.id,
            match_id=self.match_id,
            kind=self.kind,
            player_id=self.player_id,
            match_minute=self.match_minute,
            occurred_at_ms=self.occurred_at_ms,
            meta=self.meta,
        )


class Player(Base):
    __tablename__ = "players"

    id = Column(String(36), primary_key=True, default=_uuid)
    team_id = Column(String(36), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    number = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
