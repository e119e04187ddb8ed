"""
DEAR DIARY GATEWAY API
======================

This module defines the FastAPI application with the two language-model
gateways. Both are stateless: they forward to Gemini and return its answer;
nothing is stored here (the client writes diary rows itself).

ENDPOINTS:
  GET  /                        - Returns API name and list of endpoints.
  GET  /health                  - Returns whether the Gemini key is configured.
  POST /functions/chat          - Streams a companion reply. Body: {message, sessionId,
                                  conversationHistory}. Response: text/event-stream relayed
                                  frame for frame from Gemini (data: <json> frames).
  POST /functions/format-diary  - Turns one exchange into diary prose. Body: {userMessage,
                                  aiResponse}. Response: {formattedEntry}.

ERRORS:
  Every failure is a JSON body {"error": "..."}:
    500 - missing GEMINI_API_KEY, bad request body, upstream failure
    429 / 402 - Gemini rate limit / payment required, passed through to the chat client

CORS:
  Browsers call these endpoints from another origin; CORSMiddleware answers the
  preflight OPTIONS request with permissive headers.
"""


from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from contextlib import asynccontextmanager
from typing import Optional
import httpx
import uvicorn
import logging

from app.models import ChatRequest, ErrorResponse, FormatDiaryRequest, FormatDiaryResponse
from app.services.gemini_service import GatewayConfigError, GeminiService, UpstreamModelError
from config import CORS_ALLOW_HEADERS, CORS_ALLOW_ORIGINS, GEMINI_MODEL, get_gemini_api_key


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("DearDiary")

# Upstream statuses the chat client shows a dedicated notice for.
PASSTHROUGH_STATUSES = {
    429: "Rate limit exceeded",
    402: "Payment required",
}


def print_title():
    """Print the Dear Diary banner to the console when the server starts."""
    CYAN  = "\033[96m"
    WHITE = "\033[97m"
    BOLD  = "\033[1m"
    RESET = "\033[0m"

    banner = f"""
{BOLD}{CYAN}  ╔═══════════════════════════════╗
  ║        DEAR DIARY  AI         ║
  ╚═══════════════════════════════╝{RESET}
      {WHITE}Your companion is listening{RESET}
"""
    print(banner)

# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Print the banner and report configuration. The gateways hold no services
    between requests, so there is nothing to build or tear down.
    """
    print_title()
    logger.info("=" * 60)
    logger.info("Dear Diary gateways - Starting Up...")
    logger.info("=" * 60)
    logger.info("Model: %s", GEMINI_MODEL)
    if get_gemini_api_key():
        logger.info("    - Gemini key: configured")
    else:
        logger.warning("    - Gemini key: MISSING (requests will fail with 500)")
    logger.info("API: http://localhost:8000")
    logger.info("Docs: http://localhost:8000/docs")
    logger.info("=" * 60)

    yield

    logger.info("Dear Diary gateways stopped.")


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="Dear Diary AI",
    description="Chat gateways for the AI diary companion",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)


def _error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    """Malformed gateway bodies fail like any other gateway error: 500 + {"error"}."""
    logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
    return _error_response("Invalid request body")


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for Gemini calls; None = real network. Overridden in tests."""
    return None


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "Dear Diary AI",
        "endpoints": {
            "/functions/chat": "Stream a companion reply (text/event-stream)",
            "/functions/format-diary": "Format one exchange as a diary entry",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "gemini_configured": bool(get_gemini_api_key()),
        "model": GEMINI_MODEL,
    }


@app.post("/functions/chat")
async def chat(
    request: ChatRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
):
    """
    Streaming chat gateway.

    HOW IT WORKS:
    1. Validate that GEMINI_API_KEY is set (500 otherwise)
    2. Translate conversationHistory to Gemini roles, append the new message,
       add the companion persona
    3. Open streamGenerateContent?alt=sse
    4. Relay the upstream body unchanged as text/event-stream

    Each frame is `data: <json>` with the token at candidates[0].content.parts[0].text.
    """
    logger.info(
        "Received chat request: session=%s message_chars=%d history=%d",
        request.sessionId,
        len(request.message),
        len(request.conversationHistory),
    )
    try:
        service = GeminiService.from_env(transport)
        body = await service.stream_chat(request.conversationHistory, request.message)
    except UpstreamModelError as e:
        if e.status_code in PASSTHROUGH_STATUSES:
            logger.warning("Gemini returned %s for session %s", e.status_code, request.sessionId)
            return _error_response(PASSTHROUGH_STATUSES[e.status_code], status_code=e.status_code)
        return _error_response("AI service error")
    except Exception as e:
        logger.error(f"Chat error: {e}", exc_info=not isinstance(e, GatewayConfigError))
        return _error_response(str(e) or "Unknown error")

    return StreamingResponse(
        body,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@app.post("/functions/format-diary", response_model=FormatDiaryResponse)
async def format_diary(
    request: FormatDiaryRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
):
    """
    Format gateway: one non-streaming Gemini call that rewrites the exchange as a
    2-3 sentence first-person paragraph starting with "Dear Diary,".
    formattedEntry is "" when Gemini returns no text.
    """
    logger.info("Formatting diary entry")
    try:
        service = GeminiService.from_env(transport)
        formatted = await service.format_diary(request.userMessage, request.aiResponse)
    except UpstreamModelError:
        return _error_response("Failed to format diary entry")
    except Exception as e:
        logger.error(f"Format diary error: {e}", exc_info=not isinstance(e, GatewayConfigError))
        return _error_response(str(e) or "Unknown error")

    return FormatDiaryResponse(formattedEntry=formatted)


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m app.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m app.main"""
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
