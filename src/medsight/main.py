"""
MedSight Main Application
=========================

FastAPI entry point for the medical guidance service.

Endpoints:
    GET  /                          - Service information
    GET  /health                    - Liveness probe
    GET  /metrics                   - Counters for observability
    POST /classify                  - Classify one frame (image or pixels)
    GET  /guidance                  - Monitor status and latest result
    POST /guidance/{action}         - start | stop | pause | resume | reset
    WS   /ws/guidance               - Real-time monitor status
    GET  /voice/commands            - Canned voice commands
    POST /voice/command             - Interpret a transcript
    POST /voice/listen              - Transcribe audio, then interpret
    POST /voice/repeat              - Speak the last response again
    POST /chat                      - Send a chat message
    GET  /chat                      - Chat transcript
    GET  /chat/quick-actions        - Canned chat queries
    GET  /diagnostics/specializations
    POST /diagnostics               - Mock image diagnostics
    GET  /protocols                 - Emergency protocols, optionally by category
    GET  /protocols/{id}            - One protocol with checklist progress
    POST /protocols/{id}/steps/{n}  - Toggle a protocol step done / not done
    POST /protocols/{id}/reset      - Clear a protocol's checklist
    GET  /procedures                - Procedure checklists for the guidance view
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import numpy as np
from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.responses import JSONResponse

from medsight.config import settings
from medsight.classifier import FrameColorClassifier
from medsight.capabilities import (
    LoggingSpeaker,
    ScriptedTranscriber,
    StreamFrameSource,
    SyntheticFrameSource,
    create_speaker,
)
from medsight.guidance import GuidanceMonitor
from medsight.assistant import (
    EMERGENCY_CONTACTS,
    PROCEDURES,
    QUICK_ACTIONS,
    SPECIALIZATIONS,
    ChatSession,
    ProtocolChecklist,
    VoiceCommandInterpreter,
    VoiceSession,
    analyze_image,
    protocols_by_category,
)
from medsight.models.api import (
    ChatMessageModel,
    ChatRequest,
    ClassifyRequest,
    ClassifyResponse,
    DiagnosticsRequest,
    DiagnosticsResponse,
    VoiceCommandRequest,
    VoiceCommandResponse,
)
from medsight.stream import FrameBuffer, FrameConsumer, ImageDecodeError, decode_base64_image


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

# Camera ingestion (stream frame source only)
_frame_buffer: Optional[FrameBuffer] = None
_frame_consumer: Optional[FrameConsumer] = None
_consumer_task: Optional[asyncio.Task] = None

# Core components
_classifier: Optional[FrameColorClassifier] = None
_speaker = None
_monitor: Optional[GuidanceMonitor] = None

# Assistant sessions
_voice_session: Optional[VoiceSession] = None
_transcriber: Optional[ScriptedTranscriber] = None
_chat_session: Optional[ChatSession] = None
_protocol_checklist: Optional[ProtocolChecklist] = None

_startup_time: float = 0.0
_classify_requests: int = 0
_classify_errors: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_classifier() -> FrameColorClassifier:
    if _classifier is None:
        raise HTTPException(status_code=503, detail="Classifier not initialized")
    return _classifier

def get_monitor() -> GuidanceMonitor:
    if _monitor is None:
        raise HTTPException(status_code=503, detail="Guidance monitor not initialized")
    return _monitor

def get_voice_session() -> VoiceSession:
    if _voice_session is None:
        raise HTTPException(status_code=503, detail="Voice session not initialized")
    return _voice_session

def get_chat_session() -> ChatSession:
    if _chat_session is None:
        raise HTTPException(status_code=503, detail="Chat session not initialized")
    return _chat_session

def get_protocol_checklist() -> ProtocolChecklist:
    if _protocol_checklist is None:
        raise HTTPException(status_code=503, detail="Protocol checklist not initialized")
    return _protocol_checklist


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Frame Source Factory
# =============================================================================

def create_frame_source():
    """
    Create the frame source selected in config.

    For the 'stream' source this also starts the WebSocket consumer.
    """
    global _frame_buffer, _frame_consumer, _consumer_task

    source = settings.guidance.frame_source

    if source == "synthetic":
        synthetic = settings.guidance.synthetic
        logger.info(f"Using SyntheticFrameSource: {synthetic.width}x{synthetic.height}")
        return SyntheticFrameSource(
            width=synthetic.width,
            height=synthetic.height,
            base_color=synthetic.color,
        )

    elif source == "stream":
        logger.info(f"Using StreamFrameSource: {settings.stream.url}")
        _frame_buffer = FrameBuffer(maxsize=settings.stream.max_queue_size)
        _frame_consumer = FrameConsumer(
            url=settings.stream.url,
            buffer=_frame_buffer,
            reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
            max_reconnect_attempts=settings.stream.max_reconnect_attempts,
        )
        _consumer_task = asyncio.create_task(_frame_consumer.run(), name="frame_consumer")
        return StreamFrameSource(_frame_buffer)

    else:
        raise ValueError(f"Unknown frame source: {source}")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _classifier, _speaker, _monitor
    global _voice_session, _transcriber, _chat_session, _protocol_checklist
    global _startup_time, _shutdown_flag

    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    _classifier = FrameColorClassifier.from_rule_set(settings.classifier.rule_set)
    _speaker = create_speaker(
        settings.speech.backend,
        rate=settings.speech.rate,
        volume=settings.speech.volume,
    )

    _monitor = GuidanceMonitor(
        classifier=_classifier,
        frame_source=create_frame_source(),
        speaker=_speaker,
        interval_seconds=settings.guidance.analysis_interval_seconds,
        speak_results=settings.guidance.speak_results and settings.speech.voice_enabled,
        log_every_n_frames=settings.guidance.log_every_n_frames,
    )

    _voice_session = VoiceSession(
        interpreter=VoiceCommandInterpreter(),
        speaker=_speaker,
        voice_enabled=settings.speech.voice_enabled,
        history_size=settings.assistant.command_history_size,
    )
    _transcriber = ScriptedTranscriber(transcript=settings.speech.fallback_transcript)
    _chat_session = ChatSession()
    _protocol_checklist = ProtocolChecklist()

    if settings.guidance.autostart:
        await _monitor.start()

    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    await _monitor.stop()

    if _frame_consumer:
        await _frame_consumer.stop()

    if _consumer_task:
        try:
            await asyncio.wait_for(_consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            _consumer_task.cancel()
            try:
                await _consumer_task
            except asyncio.CancelledError:
                pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="MedSight",
    description="Camera color heuristics and scripted guidance for medical training",
    version=settings.app.version,
    lifespan=lifespan,
)


@app.exception_handler(ImageDecodeError)
async def image_decode_error_handler(request: Request, exc: ImageDecodeError) -> JSONResponse:
    logger.warning(f"Rejected image on {request.url.path}: {exc}")
    return JSONResponse({"detail": str(exc)}, status_code=400)


# =============================================================================
# Service Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "MedSight",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "rule_set": settings.classifier.rule_set,
        "frame_source": settings.guidance.frame_source,
        "speech_backend": settings.speech.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always returns 200 if the service is running."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    stream_metrics = {}
    if _frame_consumer and _frame_buffer:
        stream_metrics = {
            "stream_connected": _frame_consumer.connected,
            "frames_received": _frame_consumer.metrics.frames_received,
            "reconnect_count": _frame_consumer.metrics.reconnect_count,
            "buffer_dropped": _frame_buffer.metrics()["dropped_count"],
        }

    monitor_metrics = _monitor.metrics.to_dict() if _monitor else {}

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "classify_requests": _classify_requests,
        "classify_errors": _classify_errors,
        **stream_metrics,
        **monitor_metrics,
    })


# =============================================================================
# Classification
# =============================================================================

@app.post("/classify", response_model=ClassifyResponse)
async def classify(request: ClassifyRequest) -> ClassifyResponse:
    """Classify one frame supplied as a base64 image or a pixel list."""
    global _classify_requests, _classify_errors
    classifier = get_classifier()
    _classify_requests += 1

    if request.image is not None:
        try:
            pixels = decode_base64_image(request.image, label="classify request")
        except ImageDecodeError:
            _classify_errors += 1
            raise
    else:
        pixels = np.asarray([sample[:3] for sample in request.pixels], dtype=np.uint8)

    result = await asyncio.to_thread(classifier.classify, pixels)
    coverage = await asyncio.to_thread(classifier.coverage, pixels)
    pixel_count = int(pixels.shape[0] * pixels.shape[1]) if pixels.ndim == 3 else len(pixels)

    return ClassifyResponse(
        **result.to_dict(),
        rule_coverage={code: round(value, 2) for code, value in coverage.items()},
        pixel_count=pixel_count,
    )


# =============================================================================
# Guidance Monitor
# =============================================================================

def _guidance_status() -> dict:
    status = get_monitor().status()
    last = _speaker.last_utterance if isinstance(_speaker, LoggingSpeaker) else None
    status["last_utterance"] = last.to_dict() if last else None
    return status


@app.get("/guidance")
async def guidance() -> JSONResponse:
    """Monitor status and latest classification."""
    return JSONResponse(_guidance_status())


@app.post("/guidance/{action}")
async def guidance_control(action: str) -> JSONResponse:
    """Control the guidance monitor."""
    monitor = get_monitor()

    if action == "start":
        await monitor.start()
    elif action == "stop":
        await monitor.stop()
    elif action == "pause":
        monitor.pause()
    elif action == "resume":
        monitor.resume()
    elif action == "reset":
        await monitor.reset()
    else:
        raise HTTPException(status_code=404, detail=f"Unknown guidance action: {action}")

    return JSONResponse(_guidance_status())


@app.websocket("/ws/guidance")
async def guidance_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time guidance status."""
    await websocket.accept()
    logger.info("Client connected to /ws/guidance")

    try:
        while not _shutdown_flag:
            await websocket.send_json(_guidance_status())
            await asyncio.sleep(1.0)
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/guidance")


# =============================================================================
# Voice Commands
# =============================================================================

async def _voice_response(session: VoiceSession, transcript: str) -> VoiceCommandResponse:
    match = await session.process(transcript)
    return VoiceCommandResponse(
        matched=match.matched,
        command=match.command.command if match.matched else None,
        category=match.command.category.value if match.matched else None,
        response=match.response,
        spoken=session.voice_enabled and session.speaker is not None,
    )


@app.get("/voice/commands")
async def voice_commands(category: Optional[str] = None) -> JSONResponse:
    """Canned voice commands, optionally filtered by category."""
    session = get_voice_session()
    try:
        commands = session.interpreter.by_category(category)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    return JSONResponse({
        "commands": [cmd.to_dict() for cmd in commands],
        "history": [cmd.command for cmd in session.history],
    })


@app.post("/voice/command", response_model=VoiceCommandResponse)
async def voice_command(request: VoiceCommandRequest) -> VoiceCommandResponse:
    """Interpret recognized speech."""
    return await _voice_response(get_voice_session(), request.transcript)


@app.post("/voice/listen", response_model=VoiceCommandResponse)
async def voice_listen(request: Request) -> VoiceCommandResponse:
    """Transcribe the posted audio, then interpret it."""
    session = get_voice_session()
    if _transcriber is None:
        raise HTTPException(status_code=503, detail="Transcriber not initialized")
    audio = await request.body()
    transcript = await _transcriber.transcribe(audio)
    return await _voice_response(session, transcript)


@app.post("/voice/repeat")
async def voice_repeat() -> JSONResponse:
    """Speak the last response again."""
    session = get_voice_session()
    spoken = await session.repeat()
    return JSONResponse({"spoken": spoken, "response": session.last_response})


# =============================================================================
# Chatbot
# =============================================================================

@app.get("/chat")
async def chat_transcript() -> JSONResponse:
    return JSONResponse({
        "messages": [message.to_dict() for message in get_chat_session().messages],
    })


@app.post("/chat", response_model=ChatMessageModel)
async def chat(request: ChatRequest) -> ChatMessageModel:
    """Send a user message and get the bot reply."""
    reply = get_chat_session().send(request.message)
    if reply is None:
        raise HTTPException(status_code=422, detail="Message must not be blank")
    return ChatMessageModel(**reply.to_dict())


@app.get("/chat/quick-actions")
async def chat_quick_actions() -> JSONResponse:
    return JSONResponse({"quick_actions": QUICK_ACTIONS})


# =============================================================================
# Mock Diagnostics
# =============================================================================

@app.get("/diagnostics/specializations")
async def diagnostics_specializations() -> JSONResponse:
    return JSONResponse({"specializations": SPECIALIZATIONS})


@app.post("/diagnostics", response_model=DiagnosticsResponse)
async def diagnostics(request: DiagnosticsRequest) -> DiagnosticsResponse:
    """Validate the uploaded image and return the canned diagnosis."""
    result = await asyncio.to_thread(analyze_image, request.image, request.specialization)
    return DiagnosticsResponse(specialization=request.specialization, **result.to_dict())


# =============================================================================
# Emergency Protocols
# =============================================================================

def _protocol_view(checklist: ProtocolChecklist, protocol_id: str) -> dict:
    try:
        protocol = checklist.protocol(protocol_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown protocol: {protocol_id}")
    return {**protocol.to_dict(), "progress": checklist.progress(protocol_id)}


@app.get("/protocols")
async def protocols(category: Optional[str] = None) -> JSONResponse:
    """Emergency protocols, optionally filtered by category."""
    try:
        selected = protocols_by_category(category)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    return JSONResponse({
        "protocols": [protocol.to_dict() for protocol in selected],
        "contacts": list(EMERGENCY_CONTACTS),
    })


@app.get("/protocols/{protocol_id}")
async def protocol_detail(protocol_id: str) -> JSONResponse:
    return JSONResponse(_protocol_view(get_protocol_checklist(), protocol_id))


@app.post("/protocols/{protocol_id}/steps/{number}")
async def protocol_toggle_step(protocol_id: str, number: int) -> JSONResponse:
    """Toggle one step of a protocol between done and not done."""
    checklist = get_protocol_checklist()
    try:
        done = checklist.toggle_step(protocol_id, number)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown protocol: {protocol_id}")
    except IndexError:
        raise HTTPException(status_code=404, detail=f"Protocol {protocol_id} has no step {number}")
    return JSONResponse({"step": number, "completed": done, **checklist.progress(protocol_id)})


@app.post("/protocols/{protocol_id}/reset")
async def protocol_reset(protocol_id: str) -> JSONResponse:
    checklist = get_protocol_checklist()
    try:
        checklist.reset(protocol_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown protocol: {protocol_id}")
    return JSONResponse(checklist.progress(protocol_id))


@app.get("/procedures")
async def procedures() -> JSONResponse:
    """Procedure checklists shown beside the guidance camera."""
    return JSONResponse({"procedures": [procedure.to_dict() for procedure in PROCEDURES]})


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Console entry point."""
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "medsight.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
