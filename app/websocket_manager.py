"""
WebSocketManager: one WebSocket = one recognition session.

Client -> server:
- binary: PCM 16-bit mono at SAMPLE_RATE, any chunking
- text:   {"method": "startRecognition"} | {"method": "stopRecognition"}

Server -> client (JSON, one outgoing queue so order follows emission):
- {"type": "session", "session_id": ...} on connect
- TranscriptEvent payloads (partial / final / status) as they are emitted
- {"type": "response", "method": ..., "result": ...} or
  {"type": "response", "method": ..., "error": {"code": ..., "message": ...}}

Audio buffers are decoded one at a time in the default executor, so engine
callbacks never run on the event loop and never run concurrently.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

from fastapi import WebSocket

from app.asr.base import RecognitionEngine
from app.audio import AudioReceiver
from app.pending_request import PendingRequest, RecognitionError
from app.recognition_session import RecognitionSession
from app.schemas.events import STATUS_STOPPED
from app.session_store import delete_session, generate_session_id, set_session
from app.transcript.writer import TranscriptWriterBase, create_transcript_writer

logger = logging.getLogger(__name__)

METHOD_START = "startRecognition"
METHOD_STOP = "stopRecognition"


def _response(method: str | None, result: Any = None, error: RecognitionError | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": "response", "method": method}
    if error is not None:
        payload["error"] = {"code": error.code, "message": error.message}
    else:
        payload["result"] = result
    return payload


class WebSocketManager:
    def __init__(self, websocket: WebSocket, engine: RecognitionEngine) -> None:
        self._ws = websocket
        self._session_id = generate_session_id()
        self._session = RecognitionSession(engine, on_event=self._on_event, session_id=self._session_id)
        self._receiver = AudioReceiver()
        self._outgoing: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._audio_queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending_tasks: set[asyncio.Task[Any]] = set()
        self._transcript_writer: TranscriptWriterBase | None = None
        self._closed = False

    @property
    def session(self) -> RecognitionSession:
        return self._session

    def _on_event(self, payload: dict[str, Any]) -> None:
        """Event sink for the session. Called from the executor thread or the loop."""
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._outgoing.put_nowait, payload)

    async def _send_json(self, payload: dict[str, Any]) -> None:
        if self._closed:
            return
        try:
            await self._ws.send_text(json.dumps(payload))
        except Exception:
            self._closed = True

    async def _sender(self) -> None:
        """Drain outgoing queue to the socket; mirror final events to the transcript file."""
        while True:
            payload = await self._outgoing.get()
            if payload is None:
                break
            if payload.get("type") == "final" and self._transcript_writer:
                self._transcript_writer.append_final(
                    payload.get("result", ""),
                    speaker=payload.get("speaker"),
                    timestamp_ms=int(time.time() * 1000),
                )
            await self._send_json(payload)

    async def _audio_consumer(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            pcm = await self._audio_queue.get()
            try:
                if pcm is None:
                    break
                await loop.run_in_executor(None, self._session.feed_audio, pcm)
            except Exception:
                logger.exception("Session %s: failed to process audio buffer", self._session_id)
            finally:
                self._audio_queue.task_done()

    async def _await_pending(self, method: str, pending: PendingRequest) -> None:
        try:
            result = await pending.wait()
        except RecognitionError as e:
            await self._outgoing.put(_response(method, error=e))
            return
        await self._outgoing.put(_response(method, result=result))

    async def _start(self) -> None:
        loop = asyncio.get_running_loop()
        pending = await loop.run_in_executor(None, self._session.start)
        task = asyncio.create_task(self._await_pending(METHOD_START, pending))
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)

    async def _stop(self) -> None:
        """Decode buffered audio, then stop the session."""
        remainder = self._receiver.flush()
        if remainder:
            await self._audio_queue.put(remainder)
        await self._audio_queue.join()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._session.stop)

    async def _handle_text(self, text: str) -> None:
        try:
            message = json.loads(text)
        except ValueError:
            await self._outgoing.put(_response(None, error=RecognitionError("Invalid JSON", code="badRequest")))
            return
        method = message.get("method") if isinstance(message, dict) else None
        if method == METHOD_START:
            await self._start()
        elif method == METHOD_STOP:
            await self._stop()
            await self._outgoing.put(_response(method, result=STATUS_STOPPED))
        else:
            await self._outgoing.put(
                _response(method, error=RecognitionError(f"Unknown method: {method}", code="notImplemented"))
            )

    async def run(self) -> None:
        """Main loop: receive audio and method calls until the client disconnects."""
        self._loop = asyncio.get_running_loop()
        self._transcript_writer = create_transcript_writer(self._session_id, int(time.time() * 1000))
        await self._transcript_writer.start()
        set_session(self._session)
        sender_task = asyncio.create_task(self._sender())
        consumer_task = asyncio.create_task(self._audio_consumer())
        await self._outgoing.put({"type": "session", "session_id": self._session_id})
        logger.info("Session %s: connected", self._session_id)

        try:
            while not self._closed:
                try:
                    msg = await self._ws.receive()
                except Exception:
                    break
                if msg.get("type") == "websocket.disconnect":
                    break
                data = msg.get("bytes")
                if data is not None:
                    self._receiver.feed(data)
                    for frame in self._receiver.drain_frames():
                        self._audio_queue.put_nowait(frame)
                    continue
                text = msg.get("text")
                if text is not None:
                    await self._handle_text(text)
        finally:
            self._closed = True
            await self._stop()
            await self._audio_queue.put(None)
            await consumer_task
            if self._pending_tasks:
                await asyncio.gather(*self._pending_tasks, return_exceptions=True)
            await self._outgoing.put(None)
            await sender_task
            await self._transcript_writer.close()
            delete_session(self._session_id)
            logger.info("Session %s: disconnected", self._session_id)
