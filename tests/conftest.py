"""Shared fixtures: in-memory diary store, temp local session state, fake HTTP for the client."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import pytest

from app.db import DiaryEntry, make_session_factory
from app.services.diary_store import DiaryStore
from app.services.session_state import LocalSessionState


def gemini_frame(text: str) -> str:
    """One SSE data line as Gemini streams it."""
    payload = {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\r\n\r\n"


def add_entry(
    store: DiaryStore,
    session_id: str,
    user_message: str,
    ai_response: str = "Dear Diary, ...",
    created_at: datetime | None = None,
) -> DiaryEntry:
    """Insert a row with an explicit timestamp (insert() lets the database pick one)."""
    entry = DiaryEntry(session_id=session_id, user_message=user_message, ai_response=ai_response)
    if created_at is not None:
        entry.created_at = created_at
    with store.session_factory() as db:
        db.add(entry)
        db.commit()
        db.refresh(entry)
    return entry


class FakeResponse:
    """The parts of requests.Response the client uses."""

    def __init__(self, status_code: int = 200, chunks: list[bytes] | None = None, json_data: Any = None):
        self.status_code = status_code
        self.chunks = chunks or []
        self.json_data = json_data
        self.closed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def iter_content(self, chunk_size=None):
        yield from self.chunks

    def json(self):
        if isinstance(self.json_data, Exception):
            raise self.json_data
        return self.json_data

    def close(self):
        self.closed = True


class FakeHttp:
    """Routes POSTs by path suffix to queued responses (or exceptions) and records every call."""

    def __init__(self):
        self.routes: dict[str, list[Any]] = {"/functions/chat": [], "/functions/format-diary": []}
        self.calls: list[tuple[str, dict]] = []

    def queue(self, path: str, response: Any) -> None:
        self.routes[path].append(response)

    def post(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        for path, queued in self.routes.items():
            if url.endswith(path):
                result = queued.pop(0)
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"unexpected POST {url}")

    def calls_to(self, path: str) -> list[dict]:
        return [kwargs for url, kwargs in self.calls if url.endswith(path)]


@pytest.fixture
def store() -> DiaryStore:
    return DiaryStore(make_session_factory("sqlite://"))


@pytest.fixture
def session_state(tmp_path) -> LocalSessionState:
    return LocalSessionState(tmp_path / "local_storage.json")


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()
