"""
DEAR DIARY TERMINAL CLIENT
==========================

PURPOSE:
Interactive chat window for the Dear Diary gateways. Type to talk to your
companion; every exchange is formatted as a diary entry and saved
automatically. Replies are printed live as they stream in.

USAGE:
    python chat.py

    Make sure the gateways are running first: python run.py

COMMANDS:
    /new         - Start a new chat session
    /sessions    - List past sessions (newest first, * = current)
    /switch <n>  - Continue session number n from /sessions
    /diary       - Show the diary of the current session
    /export      - Save the diary to exports/my_diary_<date>.txt
    /quit        - Exit

NOTES:
- The active session id is remembered between runs (.diary_client/).
- A reloaded session shows the saved diary text for each reply, not the reply
  that was streamed at the time.
"""

import logging

from app.services.chat_orchestrator import ChatOrchestrator
from app.services.diary_store import DiaryStore
from app.services.diary_viewer import DiaryViewer
from app.services.session_browser import SessionBrowser
from app.services.session_state import LocalSessionState


logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header():
    print("\n" + "="*60)
    print("📔 Dear Diary AI")
    print("="*60)
    print("\nWelcome to your AI Diary Companion! 💭")
    print("Share your thoughts, and I'll listen. Every conversation is")
    print("automatically saved to your personal diary.")
    print("\nCommands:")
    print("  /new - New chat        /sessions - Chat history")
    print("  /switch <n> - Open a past chat")
    print("  /diary - View diary    /export - Download diary")
    print("  /quit - Exit")
    print("="*60 + "\n")


def toast(message):
    """Stand-in for a toast notification."""
    print(f"\n🔔 {message}")


def print_token(token):
    print(token, end="", flush=True)


def print_transcript(messages):
    if not messages:
        print("(empty conversation)")
        return
    for msg in messages:
        role = "You" if msg.role == "user" else "Companion"
        print(f"{role}: {msg.content}\n")


def get_user_input():
    try:
        return input("\nYou: ").strip()
    except (KeyboardInterrupt, EOFError):
        return None


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    """Read commands and messages until /quit."""
    store = DiaryStore()
    session_state = LocalSessionState()
    orchestrator = ChatOrchestrator(store, session_state, notify=toast, on_token=print_token)
    browser = SessionBrowser(store, orchestrator)
    last_listed = []

    print_header()

    while True:
        user_input = get_user_input()
        if user_input is None or user_input in ["/quit", "/exit"]:
            print("\n👋 Goodbye!")
            break

        if user_input == "/new":
            browser.new_chat()
            print("🔄 New chat started.")
            continue

        elif user_input == "/sessions":
            last_listed = browser.list_sessions()
            print(browser.render(last_listed))
            continue

        elif user_input.startswith("/switch"):
            parts = user_input.split()
            if len(parts) != 2 or not parts[1].isdigit() or not 1 <= int(parts[1]) <= len(last_listed):
                print("❌ Usage: /switch <n> (run /sessions first)")
                continue
            browser.select(last_listed[int(parts[1]) - 1].session_id)
            print_transcript(orchestrator.messages)
            continue

        elif user_input in ["/diary", "/export"]:
            viewer = DiaryViewer(store, session_state, notify=toast)
            viewer.load()
            if user_input == "/diary":
                print(viewer.render())
            else:
                path = viewer.export()
                if path:
                    print(f"📄 {path}")
            continue

        elif user_input.startswith("/"):
            print(f"❌ Unknown command: {user_input}")
            continue

        if not user_input:
            continue

        print("Companion: ", end="", flush=True)
        reply = orchestrator.send_message(user_input)
        if reply is not None:
            print()


# Run the interactive loop when this file is executed (python chat.py).
if __name__ == "__main__":
    main()
