"""
SSE LINE BUFFER
===============

Incremental parser for the event stream relayed by POST /functions/chat.

Text arrives in arbitrary chunks, so a `data:` line can be split anywhere.
SSELineBuffer keeps whatever has not been consumed yet and only looks at
complete lines (terminated by "\\n"):

  - trailing "\\r" is dropped
  - comment lines (":...") and blank lines are skipped
  - lines without the "data: " prefix are skipped
  - "data: [DONE]" stops processing the current buffer
  - anything else is parsed as JSON and the token is read from
    candidates[0].content.parts[0].text

If a line fails to parse as JSON it is put back at the front of the buffer
and processing stops until more text is fed; the line is retried on the next
feed() call. Tokens already returned are never returned again.
"""

import json
from typing import Any, List, Optional

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"


def extract_token(payload: Any) -> Optional[str]:
    """Return candidates[0].content.parts[0].text from a Gemini stream frame, or None."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class SSELineBuffer:
    """Accumulates decoded text and yields the tokens of every complete data line."""

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received but not yet consumed (partial line or a line waiting for a retry)."""
        return self._buffer

    def feed(self, chunk: str) -> List[str]:
        """Append chunk and return the tokens of the lines that could be processed, in order."""
        self._buffer += chunk
        tokens: List[str] = []

        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or line.strip() == "":
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            json_str = line[len(DATA_PREFIX):].strip()
            if json_str == DONE_TOKEN:
                break

            try:
                parsed = json.loads(json_str)
            except ValueError:
                # Possibly truncated mid-chunk: retry once more text arrives.
                self._buffer = line + "\n" + self._buffer
                break

            token = extract_token(parsed)
            if token:
                tokens.append(token)

        return tokens
