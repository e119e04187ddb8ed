"""
SESSION BROWSER MODULE
======================

Lists past conversations. The store has no sessions table, so sessions are
derived from the flat diary_entries rows: all rows newest first, keep the
first row seen per session_id. The result is ordered by each session's latest
entry, most recent first.
"""

import logging
from typing import Dict, List

from app.models import SessionSummary
from app.services.chat_orchestrator import ChatOrchestrator
from app.services.diary_store import DiaryStore
from app.utils.time_info import format_session_date
from config import PREVIEW_LENGTH

logger = logging.getLogger("DearDiary")


def make_preview(user_message: str, length: int = PREVIEW_LENGTH) -> str:
    """
    First `length` UTF-16 code units, with "..." when the message is longer.
    Counting in UTF-16 keeps previews identical to the browser clients'; an emoji
    counts as two units, and one split in half is dropped.
    """
    encoded = user_message.encode("utf-16-le")
    if len(encoded) <= length * 2:
        return user_message
    return encoded[: length * 2].decode("utf-16-le", errors="ignore") + "..."


class SessionBrowser:
    """Chat history sidebar: list sessions, switch to one, or start a new chat."""

    def __init__(self, store: DiaryStore, orchestrator: ChatOrchestrator):
        self.store = store
        self.orchestrator = orchestrator

    def list_sessions(self) -> List[SessionSummary]:
        try:
            entries = self.store.all_entries_newest_first()
        except Exception as e:
            logger.error("Error loading sessions: %s", e)
            return []

        sessions: Dict[str, SessionSummary] = {}
        for entry in entries:
            if entry.session_id not in sessions:
                sessions[entry.session_id] = SessionSummary(
                    session_id=entry.session_id,
                    created_at=entry.created_at,
                    preview=make_preview(entry.user_message),
                )
        return list(sessions.values())

    def select(self, session_id: str) -> None:
        self.orchestrator.select_session(session_id)

    def new_chat(self) -> str:
        return self.orchestrator.new_session()

    def render(self, sessions: List[SessionSummary]) -> str:
        """Numbered list for the terminal; the active session is marked with '*'."""
        lines = ["Chat History", "-" * 60]
        if not sessions:
            lines.append("  (no conversations yet)")
        for i, session in enumerate(sessions, 1):
            marker = "*" if session.session_id == self.orchestrator.session_id else " "
            lines.append(f"{marker} {i}. [{format_session_date(session.created_at)}] {session.preview}")
        return "\n".join(lines)
