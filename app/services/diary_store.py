"""
DIARY STORE MODULE
==================

Thin client over the diary_entries table. Only the three operations the app
needs: entries of one session (oldest first), all entries (newest first), and
a single-row insert. No update or delete path exists; rows are immutable.

entries_to_messages() rebuilds a chat transcript from stored rows. It is a pure
function so session reload logic can be tested without a database.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from app.db import DiaryEntry, SessionLocal, init_db
from app.models import ChatMessage

logger = logging.getLogger("DearDiary")


def entries_to_messages(entries: Iterable[DiaryEntry]) -> List[ChatMessage]:
    """
    Each row becomes a user message followed by an assistant message. The
    assistant content is the stored (formatted) diary text, so a reloaded
    session shows diary prose rather than the reply that was streamed live.
    """
    messages: List[ChatMessage] = []
    for entry in entries:
        messages.append(ChatMessage(role="user", content=entry.user_message))
        messages.append(ChatMessage(role="assistant", content=entry.ai_response))
    return messages


class DiaryStore:
    """SQLAlchemy-backed diary_entries table. Errors propagate to the caller."""

    def __init__(self, session_factory: Optional[sessionmaker] = None, create_tables: bool = True):
        self.session_factory = session_factory or SessionLocal
        if create_tables:
            init_db(self.session_factory)

    def entries_for_session(self, session_id: str) -> List[DiaryEntry]:
        """All rows of one session, oldest first."""
        with self.session_factory() as db:
            return list(
                db.scalars(
                    select(DiaryEntry)
                    .where(DiaryEntry.session_id == session_id)
                    .order_by(DiaryEntry.created_at.asc(), DiaryEntry.id.asc())
                ).all()
            )

    def all_entries_newest_first(self) -> List[DiaryEntry]:
        """Every row across all sessions, newest first."""
        with self.session_factory() as db:
            return list(
                db.scalars(
                    select(DiaryEntry).order_by(DiaryEntry.created_at.desc(), DiaryEntry.id.desc())
                ).all()
            )

    def insert(self, session_id: str, user_message: str, ai_response: str) -> DiaryEntry:
        """Write one row; id and created_at are assigned by the database."""
        entry = DiaryEntry(session_id=session_id, user_message=user_message, ai_response=ai_response)
        with self.session_factory() as db:
            db.add(entry)
            db.commit()
            db.refresh(entry)
        logger.info("Saved diary entry %s for session %s", entry.id, session_id)
        return entry
