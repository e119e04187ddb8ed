"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (app.main) and the terminal client
(chat.py) call these services.

MODULES:
    gemini_service    - Gemini request shaping, streaming relay and diary formatting (gateways)
    diary_store       - diary_entries select/insert; rows -> chat messages
    session_state     - active session id persisted on disk ("local storage")
    chat_orchestrator - send a message, stream the reply, format and save the entry
    session_browser   - past sessions grouped from diary rows
    diary_viewer      - show and export the current session's diary
"""
