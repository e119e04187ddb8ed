"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all Dear Diary settings: the Gemini credential, model names,
  database URL, client-side paths, and the two prompts (companion persona and
  diary formatting template). Designed for single-user use: each person runs
  their own copy of the gateways and the terminal client with their own .env.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Defines paths to database/ (SQLite default), the client state folder
    (holds the active session id) and the export folder (downloaded diaries).
  - Exposes GEMINI_MODEL, GEMINI_API_BASE and get_gemini_api_key() for the gateways.
  - Exposes FUNCTIONS_URL, the base URL the client uses to reach the gateways.
  - Holds the companion persona and the diary formatting template.

USAGE:
  Import what you need: `from config import DATABASE_URL, DIARY_PERSONA_PROMPT`
  All services import from here so behaviour is consistent.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


# -----------------------------------------------------------------------------
# BASE PATH
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent

# ============================================================================
# DATABASE
# ============================================================================
# The diary_entries table. Any SQLAlchemy URL works (hosted Postgres in
# production); the default is a local SQLite file.

DATABASE_DIR = BASE_DIR / "database"
DATABASE_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATABASE_DIR / 'diary.db'}")

# ============================================================================
# CLIENT STATE AND EXPORTS
# ============================================================================
# CLIENT_STATE_DIR plays the role of browser local storage: one JSON file with
# the active session id under SESSION_ID_KEY. It survives restarts but is not
# shared across machines.

CLIENT_STATE_DIR = Path(os.getenv("CLIENT_STATE_DIR", str(BASE_DIR / ".diary_client")))
SESSION_STATE_FILE = CLIENT_STATE_DIR / "local_storage.json"
SESSION_ID_KEY = "diarySessionId"

# Where /export writes my_diary_<date>.txt files.
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BASE_DIR / "exports")))

# ============================================================================
# GATEWAY URLS (CLIENT SIDE)
# ============================================================================
# Base URL of the running gateways (python run.py). The client posts to
# {FUNCTIONS_URL}/functions/chat and {FUNCTIONS_URL}/functions/format-diary.

FUNCTIONS_URL = os.getenv("FUNCTIONS_URL", "http://localhost:8000").rstrip("/")
# Optional bearer token sent by the client (the hosted store's public key).
FUNCTIONS_PUBLIC_KEY = os.getenv("FUNCTIONS_PUBLIC_KEY", "").strip()

# Seconds to wait for the gateway to start answering / for the format call.
CHAT_REQUEST_TIMEOUT = 60
FORMAT_REQUEST_TIMEOUT = 30

# ============================================================================
# GEMINI API CONFIGURATION
# ============================================================================
# Gemini is the hosted model behind both gateways. The key is read per request:
# a missing key fails that request with 500, never server startup.

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-exp")
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")
UPSTREAM_TIMEOUT = 60.0


def get_gemini_api_key() -> str:
    """Return GEMINI_API_KEY from the environment, stripped ("" if unset)."""
    return os.getenv("GEMINI_API_KEY", "").strip()


# Sampling settings. Chat is warmer and longer; formatting is short and steadier.
CHAT_GENERATION_CONFIG = {
    "temperature": 0.9,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}
FORMAT_GENERATION_CONFIG = {
    "temperature": 0.7,
    "maxOutputTokens": 200,
}

# ============================================================================
# CORS
# ============================================================================
# Browser clients call the gateways from another origin; the preflight answer
# must allow these headers.

CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# ============================================================================
# SESSION BROWSER
# ============================================================================
# UTF-16 code units of the newest user message shown as a session preview.
PREVIEW_LENGTH = 50

# ============================================================================
# PROMPTS
# ============================================================================
# DIARY_PERSONA_PROMPT is sent as the systemInstruction of every chat request.
# FORMAT_DIARY_PROMPT is filled with the user's message and the AI reply and
# turned into a short first-person diary paragraph.

DIARY_PERSONA_PROMPT = os.getenv("DIARY_PERSONA_PROMPT", "").strip() or (
    "You are a warm, empathetic AI companion and diary keeper. Your role is to "
    "listen attentively, ask thoughtful questions, and help users reflect on their "
    "day. Be supportive, curious, and genuinely interested in their thoughts and "
    "feelings. Keep responses conversational and personal."
)

FORMAT_DIARY_PROMPT = """Convert this conversation into a natural diary entry paragraph. Start with "Dear Diary," and write it as if the user is reflecting on their day. Keep it personal and flowing, without mentioning that it's a conversation with AI. Just capture the essence of what they shared.

User said: {user_message}
AI responded: {ai_response}

Write a short, natural diary entry (2-3 sentences max):"""

# Written as ai_response when formatting fails or returns nothing.
FALLBACK_DIARY_TEMPLATE = "Dear Diary,\n{user_message}"

if not get_gemini_api_key():
    logger.warning("GEMINI_API_KEY is not set; the chat and format gateways will return 500.")
