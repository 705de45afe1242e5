import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from models import Match, Player
from services.live_session_service import LiveSessionManager, get_live_sessions


KICKOFF_MS = 1_700_000_000_000

MATCH_ID = "match-1"
TOURNAMENT_ID = "tournament-1"
TEAM_ID = "team-1"


class FakeClock:
    """Wall clock under test control, in epoch milliseconds."""

    def __init__(self, now_ms=KICKOFF_MS):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance(self, seconds=0, ms=0):
        self.now_ms += seconds * 1000 + ms


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = factory()
    db.add_all([
        Match(
            id=MATCH_ID,
            tournament_id=TOURNAMENT_ID,
            team_id=TEAM_ID,
            opponent_name="SV Gegner",
            duration_min=20,
        ),
        Player(id="p-1", team_id=TEAM_ID, name="Lena", number=9),
        Player(id="p-2", team_id=TEAM_ID, name="Jonas", number=7),
        Player(id="p-retired", team_id=TEAM_ID, name="Max", active=False),
        Player(id="p-other", team_id="team-2", name="Mia"),
    ])
    db.commit()
    db.close()

    yield factory

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def sessions(session_factory, clock):
    return LiveSessionManager(session_factory, max_events_per_match=50, clock=clock)


@pytest.fixture()
def client(session_factory, sessions):
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_live_sessions] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()
