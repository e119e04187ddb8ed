"""
CHAT ORCHESTRATOR MODULE
========================

Client-side driver of one chat window. Owns the active session id, the
in-memory message list and the single in-flight send.

FLOW OF send_message(text):
  1. Reject empty text or a send while another one is in flight (no queueing).
  2. Append the user message; POST {message, sessionId, conversationHistory} to
     /functions/chat, where conversationHistory is the list *before* this message.
  3. Read the event stream chunk by chunk through SSELineBuffer; every token
     extends the running assistant text, which replaces the last assistant
     message (or is appended as a new one on the first token).
  4. POST the user text and the full streamed reply to /functions/format-diary.
  5. Insert one diary row with the *formatted* text, or "Dear Diary,\\n<text>"
     when formatting fails or returns nothing.

ERRORS:
  - Gateway status 429 / 402 / other: a notice is shown, nothing is stored.
  - Format or insert failures are logged only. The transcript on screen keeps
    the streamed reply either way; nothing is rolled back and nothing is retried.
"""

import codecs
import enum
import logging
from typing import Callable, List, Optional

import requests

from app.models import ChatMessage
from app.services.diary_store import DiaryStore, entries_to_messages
from app.services.session_state import LocalSessionState, new_session_id
from app.utils.sse import SSELineBuffer
from config import (
    CHAT_REQUEST_TIMEOUT,
    FALLBACK_DIARY_TEMPLATE,
    FORMAT_REQUEST_TIMEOUT,
    FUNCTIONS_PUBLIC_KEY,
    FUNCTIONS_URL,
)

logger = logging.getLogger("DearDiary")

RATE_LIMIT_NOTICE = "Rate limit exceeded. Please try again in a moment."
CREDITS_EXHAUSTED_NOTICE = "AI credits exhausted. Please add credits to continue."
GENERIC_FAILURE_NOTICE = "Failed to get AI response. Please try again."


def notice_for_status(status_code: int) -> str:
    """User-facing notice for a failed chat gateway response."""
    if status_code == 429:
        return RATE_LIMIT_NOTICE
    if status_code == 402:
        return CREDITS_EXHAUSTED_NOTICE
    return GENERIC_FAILURE_NOTICE


class SendState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"


class ChatStreamError(RuntimeError):
    """The chat gateway could not be reached or refused the request."""


class ChatOrchestrator:
    """
    One chat window. `notify` shows a user-visible notice (a toast in a browser,
    a printed line in the terminal client). `on_token` is called with every
    token as it arrives so the UI can render the reply live.
    """

    def __init__(
        self,
        store: DiaryStore,
        session_state: LocalSessionState,
        functions_url: str = FUNCTIONS_URL,
        http: Optional[requests.Session] = None,
        notify: Optional[Callable[[str], None]] = None,
        on_token: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.session_state = session_state
        self.functions_url = functions_url.rstrip("/")
        self.http = http or requests.Session()
        self.notify = notify or (lambda message: logger.warning("Notice: %s", message))
        self.on_token = on_token

        self.messages: List[ChatMessage] = []
        self.send_state = SendState.IDLE
        # Reuse the stored session if there is one; otherwise start (and remember) a new one.
        self.session_id = session_state.get_session_id() or new_session_id()
        self.session_state.set_session_id(self.session_id)

    @property
    def is_sending(self) -> bool:
        return self.send_state is SendState.SENDING

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if FUNCTIONS_PUBLIC_KEY:
            headers["Authorization"] = f"Bearer {FUNCTIONS_PUBLIC_KEY}"
        return headers

    # ------------------------------------------------------------------------------
    # SESSIONS
    # ------------------------------------------------------------------------------

    def new_session(self) -> str:
        """Start a fresh session; earlier rows stay in the store but are no longer shown."""
        self.session_id = new_session_id()
        self.session_state.set_session_id(self.session_id)
        self.messages = []
        logger.info("Started new session %s", self.session_id)
        return self.session_id

    def select_session(self, session_id: str) -> None:
        """Make session_id active and reload its transcript (two messages per stored row)."""
        self.session_id = session_id
        self.session_state.set_session_id(session_id)
        try:
            entries = self.store.entries_for_session(session_id)
        except Exception as e:
            logger.error("Error loading session %s: %s", session_id, e)
            return
        self.messages = entries_to_messages(entries)

    # ------------------------------------------------------------------------------
    # SENDING
    # ------------------------------------------------------------------------------

    def send_message(self, text: str) -> Optional[str]:
        """
        Send one message. Returns the streamed reply, or None if the send was
        rejected or the chat gateway failed.
        """
        if not text or not text.strip() or self.is_sending:
            return None

        user_message = text.strip()
        history = list(self.messages)
        self.messages.append(ChatMessage(role="user", content=user_message))
        self.send_state = SendState.SENDING

        try:
            try:
                ai_response = self._stream_chat(user_message, history)
            except Exception as e:
                logger.error("Chat error: %s", e)
                return None

            formatted_entry = self._format_entry(user_message, ai_response)
            try:
                self.store.insert(self.session_id, user_message, formatted_entry)
            except Exception as e:
                logger.error("Failed to save diary entry: %s", e, exc_info=True)
            return ai_response
        finally:
            self.send_state = SendState.IDLE

    def _apply_assistant_content(self, content: str) -> None:
        """Show the running reply: replace the last assistant message or append the first one."""
        if self.messages and self.messages[-1].role == "assistant":
            self.messages[-1] = ChatMessage(role="assistant", content=content)
        else:
            self.messages.append(ChatMessage(role="assistant", content=content))

    def _stream_chat(self, user_message: str, history: List[ChatMessage]) -> str:
        try:
            resp = self.http.post(
                f"{self.functions_url}/functions/chat",
                json={
                    "message": user_message,
                    "sessionId": self.session_id,
                    "conversationHistory": [m.model_dump() for m in history],
                },
                headers=self._headers(),
                stream=True,
                timeout=CHAT_REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            self.notify(GENERIC_FAILURE_NOTICE)
            raise ChatStreamError(f"Cannot reach chat gateway: {e}") from e

        try:
            if not resp.ok:
                self.notify(notice_for_status(resp.status_code))
                raise ChatStreamError(f"Failed to stream chat (status {resp.status_code})")

            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            buffer = SSELineBuffer()
            assistant_content = ""

            for chunk in resp.iter_content(chunk_size=None):
                if not chunk:
                    continue
                for token in buffer.feed(decoder.decode(chunk)):
                    assistant_content += token
                    self._apply_assistant_content(assistant_content)
                    if self.on_token:
                        self.on_token(token)

            return assistant_content
        finally:
            resp.close()

    def _format_entry(self, user_message: str, ai_response: str) -> str:
        """Diary prose for this exchange, or the fallback line if formatting gives nothing."""
        formatted = ""
        try:
            resp = self.http.post(
                f"{self.functions_url}/functions/format-diary",
                json={"userMessage": user_message, "aiResponse": ai_response},
                headers=self._headers(),
                timeout=FORMAT_REQUEST_TIMEOUT,
            )
            if resp.ok:
                data = resp.json()
                if isinstance(data, dict) and isinstance(data.get("formattedEntry"), str):
                    formatted = data["formattedEntry"]
            else:
                logger.error("Format diary failed with status %s", resp.status_code)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Format diary error: %s", e)

        return formatted or FALLBACK_DIARY_TEMPLATE.format(user_message=user_message)
