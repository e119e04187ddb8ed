"""Tests for the diary store, session browser, diary viewer and local session state."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

from app.db import DiaryEntry
from app.models import ChatMessage
from app.services.diary_store import entries_to_messages
from app.services.diary_viewer import EXPORT_HEADER, SEPARATOR_RULE, DiaryViewer, build_export_text
from app.services.session_browser import SessionBrowser, make_preview
from app.services.session_state import LocalSessionState
from app.utils.time_info import export_filename
from tests.conftest import add_entry

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
LONG_MESSAGE = "Today I finally finished the marathon I had trained for all year long!"


class TestDiaryStore:

    def test_insert_assigns_id_and_timestamp(self, store) -> None:
        entry = store.insert("s1", "hello", "Dear Diary, hello.")
        assert entry.id is not None
        assert entry.created_at is not None

    def test_session_entries_are_oldest_first(self, store) -> None:
        add_entry(store, "s1", "late", created_at=T0 + timedelta(minutes=5))
        add_entry(store, "s2", "other", created_at=T0 + timedelta(minutes=1))
        add_entry(store, "s1", "early", created_at=T0)

        assert [e.user_message for e in store.entries_for_session("s1")] == ["early", "late"]

    def test_same_timestamp_keeps_insertion_order(self, store) -> None:
        for text in ("a", "b", "c"):
            add_entry(store, "s1", text, created_at=T0)
        assert [e.user_message for e in store.entries_for_session("s1")] == ["a", "b", "c"]

    def test_entries_to_messages_expands_two_per_row(self, store) -> None:
        add_entry(store, "s1", "walked", "Dear Diary, I walked.", created_at=T0)
        add_entry(store, "s1", "read", "Dear Diary, I read.", created_at=T0 + timedelta(seconds=1))

        assert entries_to_messages(store.entries_for_session("s1")) == [
            ChatMessage(role="user", content="walked"),
            ChatMessage(role="assistant", content="Dear Diary, I walked."),
            ChatMessage(role="user", content="read"),
            ChatMessage(role="assistant", content="Dear Diary, I read."),
        ]

    def test_session_id_has_no_length_limit(self, store) -> None:
        assert getattr(DiaryEntry.__table__.c.session_id.type, "length", None) is None

        long_id = "session-" + "x" * 200
        store.insert(long_id, "hello", "Dear Diary, hello.")
        assert [e.session_id for e in store.entries_for_session(long_id)] == [long_id]

    def test_entries_to_messages_empty(self) -> None:
        assert entries_to_messages([]) == []


class TestSessionBrowser:

    def _browser(self, store, current="A") -> SessionBrowser:
        orchestrator = MagicMock()
        orchestrator.session_id = current
        return SessionBrowser(store, orchestrator)

    def test_groups_by_session_newest_first(self, store) -> None:
        add_entry(store, "A", "short first message", created_at=T0)
        add_entry(store, "B", "B only", created_at=T0 + timedelta(minutes=1))
        add_entry(store, "A", LONG_MESSAGE, created_at=T0 + timedelta(minutes=2))

        sessions = self._browser(store).list_sessions()

        assert [s.session_id for s in sessions] == ["A", "B"]
        assert sessions[0].preview == LONG_MESSAGE[:50] + "..."
        assert sessions[0].created_at.replace(tzinfo=None) == (T0 + timedelta(minutes=2)).replace(tzinfo=None)
        assert sessions[1].preview == "B only"

    def test_preview_truncation(self) -> None:
        assert make_preview("x" * 50) == "x" * 50
        assert make_preview("x" * 51) == "x" * 50 + "..."
        assert make_preview("") == ""

    def test_preview_counts_utf16_units(self) -> None:
        """Emoji outside the BMP count as two units toward the 50-unit preview."""
        assert make_preview("\U0001F600" * 25) == "\U0001F600" * 25
        assert make_preview("\U0001F600" * 30) == "\U0001F600" * 25 + "..."
        # unit 50 is the first half of an emoji; the half is dropped
        assert make_preview("a" + "\U0001F600" * 25) == "a" + "\U0001F600" * 24 + "..."

    def test_store_error_gives_empty_list(self) -> None:
        store = MagicMock()
        store.all_entries_newest_first.side_effect = RuntimeError("offline")
        assert SessionBrowser(store, MagicMock()).list_sessions() == []

    def test_select_and_new_chat_delegate(self, store) -> None:
        browser = self._browser(store)
        browser.select("B")
        browser.new_chat()
        browser.orchestrator.select_session.assert_called_once_with("B")
        browser.orchestrator.new_session.assert_called_once_with()

    def test_render_marks_current_session(self, store) -> None:
        add_entry(store, "A", "alpha", created_at=T0)
        add_entry(store, "B", "beta", created_at=T0 + timedelta(minutes=1))
        browser = self._browser(store, current="A")

        lines = browser.render(browser.list_sessions()).splitlines()

        assert lines[0] == "Chat History"
        assert lines[2].startswith("  1.") and lines[2].endswith("beta")
        assert lines[3].startswith("* 2.") and lines[3].endswith("alpha")


class TestDiaryViewer:

    def test_no_stored_session_skips_store(self, session_state) -> None:
        store = MagicMock()
        viewer = DiaryViewer(store, session_state)

        assert viewer.load() == []
        store.entries_for_session.assert_not_called()
        assert "Your diary is empty" in viewer.render()

    def test_loads_stored_session_only(self, store, session_state) -> None:
        add_entry(store, "mine", "second", created_at=T0 + timedelta(hours=1))
        add_entry(store, "mine", "first", created_at=T0)
        add_entry(store, "theirs", "not mine", created_at=T0)
        session_state.set_session_id("mine")

        entries = DiaryViewer(store, session_state).load()

        assert [e.user_message for e in entries] == ["first", "second"]

    def test_render_shows_entries_and_count(self, store, session_state) -> None:
        add_entry(store, "mine", "park", "Dear Diary, the park.", created_at=T0)
        session_state.set_session_id("mine")
        viewer = DiaryViewer(store, session_state)
        viewer.load()

        text = viewer.render()

        assert "Me:" in text and "park" in text
        assert "AI Companion:" in text and "Dear Diary, the park." in text
        assert text.endswith("1 entry in your diary")

    def test_load_error_notifies(self, session_state) -> None:
        store = MagicMock()
        store.entries_for_session.side_effect = RuntimeError("offline")
        session_state.set_session_id("mine")
        notices: list[str] = []

        assert DiaryViewer(store, session_state, notify=notices.append).load() == []
        assert notices == ["Failed to load diary entries"]

    def test_export_without_entries_writes_nothing(self, store, session_state, tmp_path) -> None:
        notices: list[str] = []
        viewer = DiaryViewer(store, session_state, notify=notices.append)
        viewer.load()

        assert viewer.export(tmp_path / "out") is None
        assert not (tmp_path / "out").exists()
        assert notices == ["No diary entries to download"]

    def test_export_writes_one_rule_per_entry(self, store, session_state, tmp_path) -> None:
        for i in range(3):
            add_entry(store, "mine", f"message {i}", f"Dear Diary, {i}.", created_at=T0 + timedelta(minutes=i))
        session_state.set_session_id("mine")
        notices: list[str] = []
        viewer = DiaryViewer(store, session_state, notify=notices.append)
        viewer.load()

        path = viewer.export(tmp_path)

        assert path.name.startswith("my_diary_") and path.suffix == ".txt"
        text = path.read_text(encoding="utf-8")
        assert text.startswith(EXPORT_HEADER)
        assert text.count(SEPARATOR_RULE) == 3
        assert "\nMe: message 0\n" in text
        assert "\nAI: Dear Diary, 2.\n" in text
        assert notices == ["Diary downloaded successfully!"]

    def test_build_export_text_layout(self, store) -> None:
        entry = add_entry(store, "s", "hi", "Dear Diary, hi.", created_at=T0)
        lines = build_export_text([entry]).split("\n")
        assert lines[0] == "Dear Diary,"
        assert lines[3:8] == ["", "Me: hi", "", "AI: Dear Diary, hi.", ""]
        assert lines[8] == SEPARATOR_RULE


class TestLocalSessionState:

    def test_round_trip(self, tmp_path) -> None:
        state = LocalSessionState(tmp_path / "nested" / "ls.json")
        assert state.get_session_id() is None
        state.set_session_id("abc")
        assert LocalSessionState(tmp_path / "nested" / "ls.json").get_session_id() == "abc"

    def test_corrupt_file_reads_as_empty(self, tmp_path) -> None:
        path = tmp_path / "ls.json"
        path.write_text("{oops", encoding="utf-8")
        assert LocalSessionState(path).get_session_id() is None


def test_export_filename() -> None:
    assert export_filename(date(2026, 10, 18)) == "my_diary_2026-10-18.txt"
