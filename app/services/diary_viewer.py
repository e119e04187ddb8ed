"""
DIARY VIEWER MODULE
===================

Shows and exports the diary of the session remembered in local session state
(not necessarily the one open in the chat window).

  load()    - rows of that session, oldest first ([] without touching the store
              when no session id is stored)
  render()  - readable text: long timestamp, "Me:" and "AI Companion:" blocks
  export()  - writes my_diary_<date>.txt: header, then per entry a date/time
              line, "Me:" line, "AI:" line and a 50-character rule
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from app.db import DiaryEntry
from app.services.diary_store import DiaryStore
from app.services.session_state import LocalSessionState
from app.utils.time_info import export_filename, format_diary_timestamp, format_export_timestamp
from config import EXPORT_DIR

logger = logging.getLogger("DearDiary")

EXPORT_HEADER = "Dear Diary,\n\n"
SEPARATOR_RULE = "─" * 50


def build_export_text(entries: List[DiaryEntry]) -> str:
    text = EXPORT_HEADER
    for entry in entries:
        text += f"{format_export_timestamp(entry.created_at)}\n"
        text += f"\nMe: {entry.user_message}\n"
        text += f"\nAI: {entry.ai_response}\n"
        text += "\n" + SEPARATOR_RULE + "\n\n"
    return text


class DiaryViewer:

    def __init__(
        self,
        store: DiaryStore,
        session_state: LocalSessionState,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.session_state = session_state
        self.notify = notify or (lambda message: logger.info("Notice: %s", message))
        self.entries: List[DiaryEntry] = []

    def load(self) -> List[DiaryEntry]:
        session_id = self.session_state.get_session_id()
        if not session_id:
            self.entries = []
            return self.entries

        try:
            self.entries = self.store.entries_for_session(session_id)
        except Exception as e:
            logger.error("Error loading diary: %s", e)
            self.notify("Failed to load diary entries")
            self.entries = []
        return self.entries

    def render(self) -> str:
        lines = ["My Diary", "=" * 60]
        if not self.entries:
            lines.append("Your diary is empty")
            lines.append("Start chatting to create your first entry!")
            return "\n".join(lines)

        for entry in self.entries:
            lines.append(format_diary_timestamp(entry.created_at))
            lines.append("Me:")
            lines.append(f"    {entry.user_message}")
            lines.append("AI Companion:")
            lines.append(f"    {entry.ai_response}")
            lines.append("-" * 60)

        count = len(self.entries)
        lines.append(f"{count} {'entry' if count == 1 else 'entries'} in your diary")
        return "\n".join(lines)

    def export(self, directory: Path = EXPORT_DIR) -> Optional[Path]:
        """Write the loaded entries to a text file; returns its path, or None when there is nothing to export."""
        if not self.entries:
            self.notify("No diary entries to download")
            return None

        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / export_filename()
        path.write_text(build_export_text(self.entries), encoding="utf-8")
        logger.info("Exported %d diary entries to %s", len(self.entries), path)
        self.notify("Diary downloaded successfully!")
        return path
