"""
FastAPI Application Module

Streaming chat relay in front of a reasoning-capable completion provider.

Key Features:
- Forwards a chat history upstream with streaming and reasoning enabled
- Re-frames the provider's event stream into simplified content/reasoning frames
- Reports failures as JSON before the stream opens, in-band afterwards
- Structured logging, Prometheus metrics, CORS and OpenTelemetry support

The relay keeps no conversation state; every request carries its own history.
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import generate_latest
from pydantic import TypeAdapter, ValidationError
from structlog import get_logger

from ..config import RelaySettings
from ..domain.errors import UpstreamError
from ..domain.models import ChatMessage
from ..metrics import CUSTOM_REGISTRY, ERRORS, REQUESTS
from ..services.relay import UpstreamRelay

logger = get_logger()

_messages_adapter = TypeAdapter(List[ChatMessage])

# Core service instance
relay = UpstreamRelay(RelaySettings.from_env())

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles app startup/shutdown and resource management"""
    logger.info("application_startup_complete", model=relay.settings.model)

    yield

    await relay.aclose()
    logger.info("application_shutdown_complete")

def get_relay() -> UpstreamRelay:
    """Returns the upstream relay"""
    return relay

app = FastAPI(
    title="EXAONE Chat Relay",
    description="Streaming relay between chat clients and the completion provider",
    version="0.1.0",
    lifespan=lifespan
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)

@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Logs every request and any failure escaping the handlers"""
    logger.info("request_started", path=request.url.path)
    try:
        return await call_next(request)
    except Exception as e:
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise

def error_response(detail: str, status_code: int) -> JSONResponse:
    """Plain JSON error body used for every pre-stream failure"""
    ERRORS.inc()
    return JSONResponse({"error": detail}, status_code=status_code)

@app.post("/api/chat")
async def chat(request: Request, relay: UpstreamRelay = Depends(get_relay)) -> Response:
    """
    Relays a chat history to the provider and streams the reply back.
    Errors before the upstream stream opens produce a JSON body instead.
    """
    REQUESTS.inc()
    try:
        body = await request.json()
    except ValueError:
        logger.warning("chat_request_unreadable")
        return error_response("Request body must be JSON", 400)

    raw_messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(raw_messages, list) or not raw_messages:
        return error_response("Messages array is required", 400)

    try:
        messages = _messages_adapter.validate_python(raw_messages)
    except ValidationError as e:
        logger.warning("chat_request_invalid", errors=e.error_count())
        return error_response("Every message needs a role of user, assistant or system and text content", 400)

    try:
        upstream = await relay.open_stream(messages)
    except UpstreamError as e:
        return error_response(e.detail, e.status_code)
    except Exception as e:
        logger.error("chat_relay_error", error=str(e))
        return error_response("Internal server error", 500)

    return StreamingResponse(
        relay.relay_frames(upstream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )

@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")
