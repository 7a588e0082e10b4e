"""
RecognitionEngine: abstract interface for a streaming recognizer that emits
JSON hypothesis records (partial and final, finals optionally with "spk").

Implementations: VoskEngine.
Engines call back into a RecognitionListener from the thread that feeds audio.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class RecognitionListener(ABC):
    """Callbacks for recognizer output. Hypotheses are raw JSON text."""

    @abstractmethod
    def on_partial_result(self, hypothesis: str) -> None:
        """Interim hypothesis; may repeat and be revised."""
        ...

    @abstractmethod
    def on_result(self, hypothesis: str) -> None:
        """Settled hypothesis for one utterance; may carry a speaker embedding."""
        ...

    @abstractmethod
    def on_final_result(self, hypothesis: str) -> None:
        """Remaining hypothesis flushed when the engine stops."""
        ...

    @abstractmethod
    def on_error(self, exc: Exception) -> None:
        ...

    @abstractmethod
    def on_timeout(self) -> None:
        ...


class RecognitionEngine(ABC):
    """
    Abstract recognizer. Accepts PCM 16-bit mono bytes at sample_rate.
    accept_audio() is synchronous; callers run it off the event loop.
    """

    @abstractmethod
    def start_listening(self, listener: RecognitionListener) -> None:
        """
        Begin a fresh recognition pass reporting to listener.
        Raises OSError/RuntimeError when the engine cannot start (e.g. model missing).
        """
        ...

    @abstractmethod
    def accept_audio(self, pcm: bytes) -> None:
        """Feed one PCM buffer; results are delivered through the listener."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Flush the final hypothesis and detach the listener."""
        ...

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Expected sample rate (e.g. 16000)."""
        ...
