"""
PendingRequest: one-shot completion channel for a recognition request.

Resolved exactly once per recognition session with one of:
- a payload dict (first final hypothesis),
- the literal TIMEOUT signal,
- a RecognitionError (engine error, failed start, teardown).
Later attempts are ignored and return False; they never raise.
Safe to complete from the recognizer thread and await from the event loop.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any

logger = logging.getLogger(__name__)

TIMEOUT = "Timeout"


class RecognitionError(Exception):
    """Recognition request failed; message is reported to the caller."""

    def __init__(self, message: str, code: str = "ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class PendingRequest:
    def __init__(self) -> None:
        self._future: Future[Any] = Future()
        self._lock = threading.Lock()

    @property
    def is_pending(self) -> bool:
        return not self._future.done()

    def resolve(self, payload: Any) -> bool:
        """Complete with payload. Returns False if already completed."""
        with self._lock:
            if self._future.done():
                logger.debug("Pending request already completed; dropping result")
                return False
            self._future.set_result(payload)
            return True

    def resolve_timeout(self) -> bool:
        return self.resolve(TIMEOUT)

    def fail(self, message: str) -> bool:
        """Complete with RecognitionError(message). Returns False if already completed."""
        with self._lock:
            if self._future.done():
                logger.debug("Pending request already completed; dropping error: %s", message)
                return False
            self._future.set_exception(RecognitionError(message))
            return True

    def result(self, timeout: float | None = None) -> Any:
        """Block until completed; raises RecognitionError on failure."""
        return self._future.result(timeout=timeout)

    async def wait(self) -> Any:
        """Await completion from the event loop."""
        return await asyncio.wrap_future(self._future)
