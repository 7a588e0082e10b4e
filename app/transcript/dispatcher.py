"""
ResultDispatcher: turns recognizer hypotheses into live events.

- PARTIAL: emitted as soon as the recognizer has interim text; may change.
- FINAL: settled text tagged with a speaker. Finals carrying an embedding go
  through the SpeakerRegistry exactly once; others get the placeholder label.
- The first FINAL also completes the pending request that started the
  session. The pending request receives a partial-shaped payload
  ({"type": "partial", "result": text}); clients depend on that shape.

The dispatcher does not know how events are delivered: on_event receives the
serialized event dict.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from app.config import get_settings
from app.diarization.speaker_registry import SpeakerRegistry
from app.pending_request import PendingRequest
from app.schemas.events import STATUS_ERROR, STATUS_TIMEOUT, TranscriptEvent
from app.transcript.hypothesis import parse_hypothesis

logger = logging.getLogger(__name__)

EventSink = Callable[[dict[str, Any]], None]


class ResultDispatcher:
    """
    Receives raw recognizer hypotheses and invokes on_event with event payloads.
    Owns the pending-request slot; slot and registry access are serialized.
    """

    def __init__(
        self,
        registry: SpeakerRegistry,
        on_event: EventSink,
        placeholder_label: str | None = None,
    ) -> None:
        self._registry = registry
        self._on_event = on_event
        self._placeholder = (
            placeholder_label
            if placeholder_label is not None
            else get_settings().DIARIZATION_PLACEHOLDER_LABEL
        )
        self._pending: PendingRequest | None = None
        self._lock = threading.RLock()

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    def _emit(self, event: TranscriptEvent) -> TranscriptEvent:
        self._on_event(event.to_payload())
        return event

    def arm(self, pending: PendingRequest) -> None:
        """Install the pending request for a new recognition session."""
        with self._lock:
            if self._pending is not None:
                self._pending.fail("Superseded by a new recognition request")
            self._pending = pending

    def handle_partial(self, raw_hypothesis: str | bytes) -> TranscriptEvent | None:
        """Emit a partial event. Raises HypothesisParseError for malformed input."""
        hypothesis = parse_hypothesis(raw_hypothesis)
        if hypothesis.partial is None:
            logger.debug("No 'partial' field in partial result: %s", raw_hypothesis)
            return None
        return self._emit(TranscriptEvent(type="partial", result=hypothesis.partial))

    def handle_final(self, raw_hypothesis: str | bytes) -> TranscriptEvent | None:
        """
        Emit a speaker-tagged final event and complete the pending request once.
        Raises HypothesisParseError for malformed input.
        """
        hypothesis = parse_hypothesis(raw_hypothesis)
        if hypothesis.text is None:
            logger.debug("No 'text' field in final result: %s", raw_hypothesis)
            return None

        with self._lock:
            embedding = hypothesis.embedding
            if embedding is not None:
                speaker = self._registry.identify_or_create(embedding)
            else:
                speaker = self._placeholder

            event = self._emit(TranscriptEvent(type="final", result=hypothesis.text, speaker=speaker))
            if self._pending is not None:
                self._pending.resolve(TranscriptEvent(type="partial", result=hypothesis.text).to_payload())
                self._pending = None
        return event

    def handle_error(self, message: str) -> None:
        """Engine reported an error: fail the pending request and emit a status event."""
        with self._lock:
            if self._pending is not None:
                self._pending.fail(message)
                self._pending = None
        self.emit_status(STATUS_ERROR)

    def handle_timeout(self) -> None:
        """Engine timed out: complete the pending request with the timeout signal."""
        with self._lock:
            if self._pending is not None:
                self._pending.resolve_timeout()
                self._pending = None
        self.emit_status(STATUS_TIMEOUT)

    def emit_status(self, status: str) -> TranscriptEvent:
        return self._emit(TranscriptEvent(type="status", result=status))

    def close(self, reason: str) -> None:
        """Fail a still-pending request so it is never left dangling."""
        with self._lock:
            if self._pending is not None:
                self._pending.fail(reason)
                self._pending = None
