"""
DATA MODELS MODULE
==================

Pydantic models for the gateway request/response bodies and the client-side
transient types. FastAPI uses these to validate incoming JSON and to serialize
responses; the client uses them for its in-memory message list and the
session browser.

MODELS:
  ChatMessage          - One message in a conversation (role + content). Client-side only.
  ChatRequest          - Body of POST /functions/chat (message, sessionId, conversationHistory).
  FormatDiaryRequest   - Body of POST /functions/format-diary (userMessage, aiResponse).
  FormatDiaryResponse  - Success body of the format gateway (formattedEntry).
  ErrorResponse        - Failure body of both gateways ({"error": "..."}).
  SessionSummary       - One row of the session browser (session id, newest timestamp, preview).

Field names on the wire are camelCase because browser clients send them that way.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

# ==============================================================================
# MESSAGES
# ==============================================================================

class ChatMessage(BaseModel):
    """
    A single message in a conversation. Order in the list defines chronology.
    Reloaded sessions rebuild these from diary rows (see entries_to_messages).
    """
    role: str       # "user" or "assistant"
    content: str

# ==============================================================================
# GATEWAY BODIES
# ==============================================================================

class ChatRequest(BaseModel):
    """
    Request body for POST /functions/chat.

    conversationHistory is the message list *before* this message; the gateway
    appends `message` as the final user turn itself.
    """
    message: str
    sessionId: Optional[str] = None
    conversationHistory: List[ChatMessage] = Field(default_factory=list)


class FormatDiaryRequest(BaseModel):
    """Request body for POST /functions/format-diary."""
    userMessage: str
    aiResponse: str


class FormatDiaryResponse(BaseModel):
    formattedEntry: str


class ErrorResponse(BaseModel):
    error: str

# ==============================================================================
# SESSION BROWSER
# ==============================================================================

class SessionSummary(BaseModel):
    """
    One session in the browser list. created_at and preview come from the
    session's newest row.
    """
    session_id: str
    created_at: datetime
    preview: str
