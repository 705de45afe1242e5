from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./live_match.db"
    max_events_per_match: int = 500
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite connections are shared across FastAPI's worker threads
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency: yields a database session

    The session is closed once the request is done.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Transaction decorator: commit on success, rollback on any error

    Usage:
        @transactional
        def some_business_logic(db: Session, ...):
            db.add(row)
            # no manual commit, the decorator handles it

    On error:
        - the session is rolled back
        - the exception is re-raised for the caller

    Note:
        - the session must be the first positional argument or `db=`
        - bound methods pass `self` first, so the session may also be the
          second positional argument
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = kwargs.get('db')
        if db is None:
            db = next((a for a in args[:2] if isinstance(a, Session)), None)

        if db is None:
            raise ValueError(
                f"@transactional requires a 'db: Session' argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
