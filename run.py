"""
RUN SCRIPT - Start the Dear Diary gateways
==========================================

PURPOSE:
  Single entry point to start the backend that the chat client talks to:
  POST /functions/chat and POST /functions/format-diary.

WHAT IT DOES:
  - Imports the FastAPI app from app.main.
  - Runs it with uvicorn on host 0.0.0.0 (accept connections from any interface) and port 8000.
  - reload=True means any change to Python files will restart the server (handy for development).

USAGE:
  python run.py

  Then start the client in another terminal: python chat.py
  API docs: http://localhost:8000/docs

NOTE:
  Before running, set GEMINI_API_KEY in .env. Without it both gateways answer 500.
"""

import uvicorn

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",   # String path to the FastAPI app instance (module:variable).
        host="0.0.0.0",   # Listen on all network interfaces so other devices can connect.
        port=8000,        # HTTP port; change if 8000 is already in use (and FUNCTIONS_URL with it).
        reload=True       # Auto-restart when .py files change (useful during development).
    )
