"""
aiduino Main Application
========================

FastAPI entry point for the streaming service.

One StreamSession (and its SummaryScheduler) is created per application
in the lifespan handler and kept on app.state; handlers reach it through
the request, never through module globals.

Endpoints:
    GET  /              - Service information
    GET  /health        - Liveness probe (is process alive?)
    GET  /ready         - Readiness probe (device streaming?)
    GET  /metrics       - Stream, ring and summary counters
    POST /connect       - Open the byte source and start streaming
    POST /disconnect    - Stop streaming and release the byte source
    GET  /samples       - Snapshot of the sample window (oldest first)
    GET  /summary       - Latest summary and status text
    GET  /notifications - Recent user-facing notifications
    POST /api/summary   - Summarize posted samples via the AI backend
    WS   /ws/samples    - Window snapshot pushed once per second
"""

import asyncio
import logging
import os
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from aiduino.config import Settings, settings as default_settings
from aiduino.models.summary import SummaryRequest
from aiduino.stream import Notification, StreamSession
from aiduino.summary import (
    ChatCompletionSummarizer,
    HttpSummarizer,
    SummarizationError,
    Summarizer,
    SummaryScheduler,
)
from aiduino.transport import (
    ByteSource,
    SerialByteSource,
    SimulatedByteSource,
    SourceConnectionError,
    WebSocketByteSource,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Factories
# =============================================================================

def create_byte_source(cfg: Settings) -> ByteSource:
    """
    Create a byte source based on config.

    Fails fast on an unknown backend.
    """
    backend = cfg.source.backend

    if backend == "serial":
        serial_cfg = cfg.source.serial
        logger.info(f"Using SerialByteSource: {serial_cfg.port} @ {serial_cfg.baud_rate}")
        return SerialByteSource(
            port=serial_cfg.port,
            baud_rate=serial_cfg.baud_rate,
            read_timeout=serial_cfg.read_timeout_seconds,
            read_size=serial_cfg.read_size,
        )

    elif backend == "websocket":
        logger.info(f"Using WebSocketByteSource: {cfg.source.websocket.url}")
        return WebSocketByteSource(
            url=cfg.source.websocket.url,
            open_timeout=cfg.source.websocket.open_timeout_seconds,
        )

    elif backend == "simulated":
        sim = cfg.source.simulated
        logger.info("Using SimulatedByteSource")
        return SimulatedByteSource(
            interval_seconds=sim.interval_seconds,
            max_lines=sim.max_lines,
            corrupt_every=sim.corrupt_every,
            max_chunk_size=sim.max_chunk_size,
        )

    else:
        raise ValueError(f"Unknown byte source backend: {backend}")


def create_ai_backend(cfg: Settings) -> ChatCompletionSummarizer:
    """Chat-completions backend behind POST /api/summary."""
    return ChatCompletionSummarizer(
        url=cfg.ai.completions_url,
        model=cfg.ai.model,
        max_words=cfg.ai.max_words,
        timeout=cfg.ai.timeout_seconds,
        api_key=cfg.ai.api_key,
    )


def create_summarizer(cfg: Settings, ai_backend: ChatCompletionSummarizer) -> Summarizer:
    """
    Summarizer used by the scheduler.

    Talks to an external summary endpoint when one is configured,
    otherwise calls the AI backend in-process.
    """
    if cfg.summary.endpoint_url:
        logger.info(f"Summaries via endpoint: {cfg.summary.endpoint_url}")
        return HttpSummarizer(
            url=cfg.summary.endpoint_url,
            timeout=cfg.summary.request_timeout_seconds,
        )
    logger.info(f"Summaries via AI backend: {cfg.ai.completions_url}")
    return ai_backend


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the session on startup, disconnect it on shutdown."""
    cfg: Settings = app.state.settings
    app.state.startup_time = time.time()
    logger.info(f"Starting {cfg.app.name} {cfg.app.version}")

    notifications: deque = deque(maxlen=50)
    session = StreamSession(
        source_factory=app.state.source_factory,
        capacity=cfg.buffer.capacity,
        notify=notifications.append,
    )

    scheduler: Optional[SummaryScheduler] = None
    if cfg.summary.enabled:
        scheduler = SummaryScheduler(
            session,
            app.state.summarizer,
            min_samples=cfg.summary.min_samples,
            interval_seconds=cfg.summary.interval_seconds,
        )

    app.state.session = session
    app.state.scheduler = scheduler
    app.state.notifications = notifications

    if cfg.server.autoconnect:
        try:
            await session.connect()
        except SourceConnectionError as e:
            logger.error(f"Autoconnect failed: {e}")

    logger.info(f"Source backend: {cfg.source.backend}, window: {cfg.buffer.capacity} samples")

    yield

    logger.info("Shutting down gracefully...")
    await session.disconnect()
    if scheduler is not None:
        await scheduler.shutdown()
    logger.info("Shutdown complete")


# =============================================================================
# HTTP Endpoints
# =============================================================================

router = APIRouter()


@router.get("/")
async def root(request: Request) -> JSONResponse:
    """Service information endpoint."""
    cfg: Settings = request.app.state.settings
    return JSONResponse({
        "service": cfg.app.name,
        "version": cfg.app.version,
        "status": "running",
        "source_backend": cfg.source.backend,
        "buffer_capacity": cfg.buffer.capacity,
    })


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - request.app.state.startup_time, 1),
    })


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """
    Readiness probe - is a device streaming?

    Returns 200 while the session is STREAMING, 503 otherwise.
    """
    session: StreamSession = request.app.state.session
    body = {
        "status": "ready" if session.connected else "not_ready",
        "state": session.state.value,
        "samples_buffered": len(session.ring),
    }
    return JSONResponse(body, status_code=200 if session.connected else 503)


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    """Detailed metrics for observability."""
    session: StreamSession = request.app.state.session
    scheduler: Optional[SummaryScheduler] = request.app.state.scheduler

    return JSONResponse({
        "uptime_seconds": round(time.time() - request.app.state.startup_time, 1),
        "state": session.state.value,
        "stream": session.metrics.to_dict(),
        "ring": session.ring.metrics(),
        "summary": scheduler.get_metrics() if scheduler else None,
        "last_error": str(session.last_error) if session.last_error else None,
    })


@router.post("/connect")
async def connect(request: Request) -> JSONResponse:
    """Open the configured byte source and start streaming."""
    session: StreamSession = request.app.state.session
    try:
        started = await session.connect()
    except SourceConnectionError as e:
        return JSONResponse(
            {"message": "Connection failed", "details": str(e)},
            status_code=502,
        )

    return JSONResponse({
        "status": "connected" if started else "already_connected",
        "state": session.state.value,
    })


@router.post("/disconnect")
async def disconnect(request: Request) -> JSONResponse:
    """Stop streaming and release the byte source."""
    session: StreamSession = request.app.state.session
    await session.disconnect()
    return JSONResponse({"status": "disconnected", "state": session.state.value})


def _snapshot_payload(session: StreamSession) -> dict:
    samples = session.ring.snapshot()
    return {
        "connected": session.connected,
        "state": session.state.value,
        "capacity": session.ring.capacity,
        "count": len(samples),
        "samples": [sample.to_dict() for sample in samples],
    }


@router.get("/samples")
async def samples(request: Request) -> JSONResponse:
    """Snapshot of the current sample window, oldest first."""
    return JSONResponse(_snapshot_payload(request.app.state.session))


@router.get("/summary")
async def summary(request: Request) -> JSONResponse:
    """Latest summary and the status text a summary card should show."""
    scheduler: Optional[SummaryScheduler] = request.app.state.scheduler
    if scheduler is None:
        return JSONResponse({"message": "Summaries are disabled"}, status_code=404)

    latest = scheduler.latest
    return JSONResponse({
        "text": scheduler.status_message(),
        "in_flight": scheduler.in_flight,
        "latest": latest.model_dump(mode="json") if latest else None,
    })


@router.get("/notifications")
async def notifications(request: Request) -> JSONResponse:
    """Recent user-facing notifications, oldest first."""
    items: deque = request.app.state.notifications
    return JSONResponse({
        "notifications": [
            {"level": n.level.value, "title": n.title, "description": n.description}
            for n in list(items)
        ]
    })


@router.post("/api/summary")
async def summarize_samples(request: Request) -> JSONResponse:
    """
    Summarize posted samples with the AI backend.

    Body: {"samples": [{"timestamp": ..., "data": {...}}, ...]}
    Returns {"text": ...} or {"message": ...} with a non-2xx status.
    """
    try:
        body = await request.json()
        summary_request = SummaryRequest.model_validate(body)
    except ValueError:
        # Covers both malformed JSON and pydantic ValidationError
        return JSONResponse({"message": "Invalid samples data"}, status_code=400)

    backend: ChatCompletionSummarizer = request.app.state.ai_backend
    payload = [sample.model_dump() for sample in summary_request.samples]
    try:
        text = await backend.summarize_payload(payload)
    except SummarizationError as e:
        return JSONResponse(
            {"message": e.message, "details": e.details},
            status_code=e.status_code or 500,
        )
    except Exception as e:
        logger.error(f"Error in summary endpoint: {e}")
        return JSONResponse(
            {"message": "Internal Server Error", "details": str(e)},
            status_code=500,
        )

    return JSONResponse({"text": text})


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@router.websocket("/ws/samples")
async def samples_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing the window snapshot once per second."""
    await websocket.accept()
    logger.info("Client connected to /ws/samples")

    session: StreamSession = websocket.app.state.session
    try:
        while True:
            await websocket.send_json(_snapshot_payload(session))
            await asyncio.sleep(1.0)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/samples")


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(
    app_settings: Optional[Settings] = None,
    source_factory: Optional[Callable[[], ByteSource]] = None,
    summarizer: Optional[Summarizer] = None,
    ai_backend: Optional[ChatCompletionSummarizer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the loaded global settings)
        source_factory: Overrides the configured byte source
        summarizer: Overrides the scheduler's summarizer
        ai_backend: Overrides the backend behind POST /api/summary
    """
    cfg = app_settings or default_settings

    application = FastAPI(
        title="aiduino",
        description="Live sensor stream with rolling window and AI summaries",
        version=cfg.app.version,
        lifespan=lifespan,
    )
    application.state.settings = cfg
    application.state.source_factory = source_factory or (lambda: create_byte_source(cfg))
    backend = ai_backend or create_ai_backend(cfg)
    application.state.ai_backend = backend
    application.state.summarizer = summarizer or create_summarizer(cfg, backend)
    application.include_router(router)
    return application


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", default_settings.server.port))

    uvicorn.run(
        "aiduino.main:app",
        host=default_settings.server.host,
        port=port,
        reload=False,
    )
