"""
LOCAL SESSION STATE
===================

The client's equivalent of browser local storage: a small JSON file holding
string keys. The app uses exactly one key, SESSION_ID_KEY, for the active
session id. Survives restarts of the client; not shared across machines.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from config import SESSION_ID_KEY, SESSION_STATE_FILE

logger = logging.getLogger("DearDiary")


def new_session_id() -> str:
    """Random UUID string, generated client-side."""
    return str(uuid.uuid4())


class LocalSessionState:
    """get/set of the active session id, backed by one JSON file."""

    def __init__(self, path: Path = SESSION_STATE_FILE, key: str = SESSION_ID_KEY):
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read client state %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_session_id(self) -> Optional[str]:
        value = self._read().get(self.key)
        return value if isinstance(value, str) and value else None

    def set_session_id(self, session_id: str) -> None:
        data = self._read()
        data[self.key] = session_id
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)
