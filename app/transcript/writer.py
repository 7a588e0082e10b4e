"""
TranscriptWriter: session-based, append-only persistence of FINAL events.

One line per final event: "[Speaker 1] text", optionally prefixed with
[MM:SS.ss] (elapsed since session start). Partial events are never written:
they are revised by later hypotheses and would leave duplicates in the file.
"""
from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from app.config import get_settings

logger = logging.getLogger(__name__)


def _format_speaker_line(
    text: str,
    timestamp_ms: Optional[int],
    session_start_ms: int,
    add_timestamps: bool,
    speaker: Optional[str] = None,
) -> str:
    """Format one line with optional [MM:SS.ss] and [Speaker N] prefix."""
    parts: list[str] = []
    if add_timestamps and timestamp_ms is not None:
        elapsed_sec = max(0.0, (timestamp_ms - session_start_ms) / 1000.0)
        mm = int(elapsed_sec // 60)
        ss = elapsed_sec % 60
        parts.append(f"[{mm:02d}:{ss:05.2f}]")
    if speaker:
        parts.append(f"[{speaker}]")
    parts.append(text.strip())
    return " ".join(parts)


class TranscriptWriterBase(ABC):
    """Base for session transcript writer. Only final events are appended."""

    @abstractmethod
    async def start(self) -> None:
        """Open file when the session starts. Call once."""
        ...

    @abstractmethod
    def append_final(
        self,
        text: str,
        speaker: Optional[str] = None,
        timestamp_ms: Optional[int] = None,
    ) -> None:
        """Append one final line. Non-blocking; queues the write."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Flush and close file. Safe to call from finally."""
        ...


class NoOpTranscriptWriter(TranscriptWriterBase):
    """When transcript saving is disabled. No file I/O."""

    async def start(self) -> None:
        pass

    def append_final(
        self,
        text: str,
        speaker: Optional[str] = None,
        timestamp_ms: Optional[int] = None,
    ) -> None:
        pass

    async def close(self) -> None:
        pass


class TranscriptWriter(TranscriptWriterBase):
    """
    One file per session: {TRANSCRIPT_DIR}/{session_id}.txt.
    Worker task drains the queue so event delivery never waits on disk.
    """

    def __init__(
        self,
        session_id: str,
        session_start_ms: int,
        transcript_dir: Optional[str] = None,
        add_timestamps: Optional[bool] = None,
    ) -> None:
        settings = get_settings()
        self._session_id = session_id
        self._session_start_ms = session_start_ms
        self._transcript_dir = transcript_dir or settings.TRANSCRIPT_DIR
        self._add_timestamps = (
            add_timestamps if add_timestamps is not None else settings.TRANSCRIPT_ADD_TIMESTAMPS
        )
        self._path = os.path.join(self._transcript_dir, f"{session_id}.txt")
        self._file = None
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None
        self._started = False

    @property
    def path(self) -> str:
        return self._path

    async def _worker(self) -> None:
        """Write each queued line (append + newline + flush). None = close."""
        while True:
            line = await self._queue.get()
            if line is None:
                break
            if self._file is None:
                continue
            try:
                self._file.write(line + "\n")
                self._file.flush()
            except OSError as e:
                logger.warning("Transcript write failed for %s: %s", self._path, e)
        try:
            if self._file is not None:
                self._file.close()
        except OSError as e:
            logger.warning("Transcript close failed for %s: %s", self._path, e)
        finally:
            self._file = None

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        try:
            os.makedirs(self._transcript_dir, exist_ok=True)
            self._file = open(self._path, "a", encoding="utf-8")
        except OSError as e:
            logger.warning("Transcript file open failed for %s: %s", self._path, e)
        self._worker_task = asyncio.create_task(self._worker())

    def append_final(
        self,
        text: str,
        speaker: Optional[str] = None,
        timestamp_ms: Optional[int] = None,
    ) -> None:
        text = (text or "").strip()
        if not text:
            return
        line = _format_speaker_line(
            text, timestamp_ms, self._session_start_ms, self._add_timestamps, speaker
        )
        self._queue.put_nowait(line)

    async def close(self) -> None:
        if not self._started or self._worker_task is None:
            return
        try:
            self._queue.put_nowait(None)
            await asyncio.wait_for(self._worker_task, timeout=5.0)
        except asyncio.TimeoutError:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
        self._worker_task = None


def create_transcript_writer(session_id: str, session_start_ms: int) -> TranscriptWriterBase:
    """Create writer when TRANSCRIPT_SAVE_ENABLED is true; else no-op."""
    settings = get_settings()
    if not settings.TRANSCRIPT_SAVE_ENABLED:
        return NoOpTranscriptWriter()
    return TranscriptWriter(session_id=session_id, session_start_ms=session_start_ms)
