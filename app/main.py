"""
FastAPI app: WebSocket endpoint for real-time speech recognition with online
speaker diarization; HTTP API to inspect and stop live sessions.

Client sends binary PCM 16-bit mono 16kHz plus JSON method calls. Server responds with JSON:
{ "type": "partial" | "final" | "status", "result": "...", "speaker": "Speaker 1" (final only) }
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from app.asr.base import RecognitionEngine
from app.asr.vosk_engine import VoskEngine, load_vosk_models
from app.config import configure_logging, get_settings
from app.schemas.events import STATUS_STOPPED, SpeakersResponse
from app.session_store import get_session
from app.websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    # Load Vosk models once at startup (shared by every session)
    model, spk_model = await run_in_threadpool(load_vosk_models, settings)
    app.state.vosk_model = model
    app.state.vosk_spk_model = spk_model
    yield
    app.state.vosk_model = None
    app.state.vosk_spk_model = None


app = FastAPI(
    title="Live Speaker Diarization",
    description="WebSocket streaming recognition with online speaker labels",
    lifespan=lifespan,
)


def get_recognition_engine(websocket: WebSocket) -> RecognitionEngine:
    """One engine per WebSocket, backed by the shared models loaded at startup."""
    state = websocket.app.state
    return VoskEngine(
        model=getattr(state, "vosk_model", None),
        spk_model=getattr(state, "vosk_spk_model", None),
    )


@app.websocket("/ws/recognize")
async def websocket_recognize(
    websocket: WebSocket,
    engine: RecognitionEngine = Depends(get_recognition_engine),
) -> None:
    """
    WebSocket: client sends raw PCM (binary) and method calls (text JSON).
    Server sends session, partial/final/status events and method responses.
    """
    await websocket.accept()
    manager = WebSocketManager(websocket, engine)
    try:
        await manager.run()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket session failed")
        try:
            await websocket.close()
        except Exception:
            pass


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/api/sessions/{session_id}/speakers", response_model=SpeakersResponse)
async def list_speakers(session_id: str) -> SpeakersResponse:
    """Speakers tracked so far in a live session, in creation order."""
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SpeakersResponse(session_id=session_id, speakers=session.speakers())


@app.post("/api/sessions/{session_id}/stop")
async def stop_session(session_id: str) -> dict:
    """Stop recognition for a live session (same as stopRecognition over the socket)."""
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    await run_in_threadpool(session.stop)
    return {"session_id": session_id, "result": STATUS_STOPPED}
