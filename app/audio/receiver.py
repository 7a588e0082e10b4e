"""
AudioReceiver: accepts raw PCM audio from WebSocket and yields recognizer buffers.

- Expects PCM 16-bit mono at SAMPLE_RATE.
- Emits fixed-size buffers (RECOGNITION_BUFFER_MS, 200ms = 6400 bytes @ 16kHz).
"""
from __future__ import annotations

from app.config import get_settings


def buffer_bytes_for(sample_rate: int, sample_width: int, buffer_ms: int) -> int:
    """Bytes in one buffer; always a whole number of samples."""
    samples = max(1, sample_rate * buffer_ms // 1000)
    return samples * sample_width


class AudioReceiver:
    """
    Buffers incoming binary WebSocket messages into fixed-size PCM buffers.
    Any remainder is kept for the next feed.
    """

    def __init__(self, frame_bytes: int | None = None) -> None:
        settings = get_settings()
        self._frame_bytes = frame_bytes or buffer_bytes_for(
            settings.SAMPLE_RATE, settings.SAMPLE_WIDTH, settings.RECOGNITION_BUFFER_MS
        )
        self._buffer = bytearray()

    @property
    def frame_bytes(self) -> int:
        return self._frame_bytes

    def feed(self, data: bytes) -> None:
        """Append raw PCM bytes. Call from WebSocket handler."""
        self._buffer.extend(data)

    def drain_frames(self) -> list[bytes]:
        """Drain all complete buffers; remainder stays."""
        out: list[bytes] = []
        while len(self._buffer) >= self._frame_bytes:
            out.append(bytes(self._buffer[: self._frame_bytes]))
            del self._buffer[: self._frame_bytes]
        return out

    def flush(self) -> bytes:
        """Return and clear the incomplete remainder (on stop/disconnect)."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def remaining_bytes(self) -> int:
        """Bytes left in buffer (incomplete buffer)."""
        return len(self._buffer)
