"""
DATABASE MODULE
===============

SQLAlchemy engine, session factory and the diary_entries table.

One row per chat exchange: the user's raw message and the *formatted* diary
prose produced by the format gateway. Rows are never updated or deleted.
created_at is assigned by the database; id (autoincrement) breaks ties between
rows written within the same clock tick so ordering stays total per session.
"""

from sqlalchemy import Column, DateTime, Integer, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

from config import DATABASE_URL

Base = declarative_base()


class DiaryEntry(Base):
    __tablename__ = "diary_entries"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Text, nullable=False, index=True)
    user_message = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)  # formatted diary prose, not the streamed reply
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<DiaryEntry id={self.id} session_id={self.session_id!r} created_at={self.created_at}>"


def make_session_factory(database_url: str = DATABASE_URL) -> sessionmaker:
    """
    Build a session factory for the given URL.
    In-memory SQLite gets a StaticPool so every session sees the same database.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_pre_ping=True, pool_recycle=300)
    engine = create_engine(database_url, **kwargs)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(session_factory: sessionmaker) -> None:
    """Create diary_entries if it does not exist (no migrations)."""
    Base.metadata.create_all(session_factory.kw["bind"])


SessionLocal = make_session_factory()
