"""
RecognitionSession: one recognition session = one SpeakerRegistry + one ResultDispatcher.

Lifecycle:
- start(): arm the pending request, start the engine, emit "Recognition started".
- feed_audio(): engine callbacks land here (RecognitionListener) and go to the dispatcher.
- on_error / on_timeout: complete the pending request, emit a status event, resume listening.
- stop(): stop the engine, fail any pending request, reset the registry.

Engine access, the registry and the pending slot are serialized by one lock,
so a stop from the event loop cannot interleave with a buffer being decoded.
"""
from __future__ import annotations

import logging
import threading
import uuid

from app.asr.base import RecognitionEngine, RecognitionListener
from app.diarization.speaker_registry import SpeakerRegistry
from app.pending_request import PendingRequest
from app.schemas.events import STATUS_STARTED, STATUS_STOPPED, SpeakerSummary
from app.transcript.dispatcher import EventSink, ResultDispatcher
from app.transcript.hypothesis import HypothesisParseError

logger = logging.getLogger(__name__)


class RecognitionSession(RecognitionListener):
    def __init__(
        self,
        engine: RecognitionEngine,
        on_event: EventSink,
        session_id: str | None = None,
        registry: SpeakerRegistry | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._engine = engine
        self._registry = registry or SpeakerRegistry()
        self._dispatcher = ResultDispatcher(self._registry, on_event)
        self._lock = threading.RLock()
        self._listening = False

    @property
    def registry(self) -> SpeakerRegistry:
        return self._registry

    @property
    def dispatcher(self) -> ResultDispatcher:
        return self._dispatcher

    @property
    def is_listening(self) -> bool:
        return self._listening

    def start(self, pending: PendingRequest | None = None) -> PendingRequest:
        """
        Start recognition. Returns the pending request completed by the first final
        hypothesis, an engine error/timeout, or stop(). A failed start fails it at once.
        """
        pending = pending or PendingRequest()
        with self._lock:
            self._dispatcher.arm(pending)
            try:
                self._engine.start_listening(self)
            except (OSError, RuntimeError) as e:
                logger.warning("Session %s: recognition failed to start: %s", self.session_id, e)
                self._dispatcher.close(str(e))
                return pending
            self._listening = True
            logger.info("Session %s: recognition started", self.session_id)
            self._dispatcher.emit_status(STATUS_STARTED)
        return pending

    def feed_audio(self, pcm: bytes) -> None:
        """Decode one PCM buffer. Blocking; run off the event loop."""
        with self._lock:
            if not self._listening:
                return
            self._engine.accept_audio(pcm)

    def _resume(self) -> None:
        with self._lock:
            if not self._listening:
                return
            try:
                self._engine.start_listening(self)
            except (OSError, RuntimeError) as e:
                logger.error("Session %s: failed to resume listening: %s", self.session_id, e)
                self._listening = False

    # --- RecognitionListener ---

    def on_partial_result(self, hypothesis: str) -> None:
        try:
            self._dispatcher.handle_partial(hypothesis)
        except HypothesisParseError as e:
            logger.warning("Session %s: malformed partial hypothesis: %s", self.session_id, e)

    def on_result(self, hypothesis: str) -> None:
        try:
            self._dispatcher.handle_final(hypothesis)
        except HypothesisParseError as e:
            logger.warning("Session %s: malformed final hypothesis: %s", self.session_id, e)

    def on_final_result(self, hypothesis: str) -> None:
        # Flushed on stop; only on_result finals are dispatched.
        logger.debug("Session %s: ignoring flushed hypothesis: %s", self.session_id, hypothesis)

    def on_error(self, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        logger.warning("Session %s: recognition error: %s", self.session_id, message)
        self._dispatcher.handle_error(message)
        self._resume()

    def on_timeout(self) -> None:
        logger.info("Session %s: recognition timeout", self.session_id)
        self._dispatcher.handle_timeout()
        self._resume()

    # ---

    def stop(self) -> None:
        """Stop recognition and discard session state. Safe to call more than once."""
        with self._lock:
            was_listening = self._listening
            self._listening = False
            if was_listening:
                try:
                    self._engine.stop()
                except Exception as e:
                    logger.error("Session %s: failed to stop recognition engine: %s", self.session_id, e)
                self._dispatcher.emit_status(STATUS_STOPPED)
                logger.info(
                    "Session %s: recognition stopped (%d speakers)", self.session_id, len(self._registry)
                )
            self._dispatcher.close(STATUS_STOPPED)
            self._registry.reset()

    def speakers(self) -> list[SpeakerSummary]:
        return [SpeakerSummary(label=label, utterances=n) for label, n in self._registry.summaries()]
