"""
DEAR DIARY APPLICATION PACKAGE
==============================

Gateways (server side) and the chat client's building blocks.

FILE STRUCTURE:
  app/
    __init__.py   - This file; marks 'app' as a package.
    main.py       - FastAPI app: POST /functions/chat, POST /functions/format-diary, /health.
    models.py     - Pydantic models for gateway bodies and client-side messages/sessions.
    db.py         - SQLAlchemy engine and the diary_entries table.
    services/     - Gemini calls (server) and orchestrator, store, session browser,
                    diary viewer, local session state (client).
    utils/        - Helpers: SSE line buffer, timestamp formatting.
"""
