"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  sse       - SSELineBuffer: turns streamed text chunks into tokens, retrying split JSON lines.
  time_info - timestamp formatting for sessions, diary view and export; export file name.
"""
