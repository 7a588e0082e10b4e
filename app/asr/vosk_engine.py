"""
VoskEngine: streaming recognizer using vosk (Kaldi).

- Models loaded ONCE at startup (load_vosk_models) and shared by every session.
- With a speaker model, each completed utterance carries an x-vector in "spk".
- A fresh KaldiRecognizer per start_listening(), so restarts after an error
  or timeout begin with clean decoder state.
"""
from __future__ import annotations

import logging
import os
from typing import Any

from app.asr.base import RecognitionEngine, RecognitionListener
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Types for shared vosk.Model / vosk.SpkModel (loaded at startup)
VoskModelT = Any
VoskSpkModelT = Any


def load_vosk_models(settings: Settings | None = None) -> tuple[VoskModelT | None, VoskSpkModelT | None]:
    """
    Load the ASR model and (when diarization is enabled) the speaker model.
    Missing model directories are logged and yield None for that model.
    """
    try:
        import vosk
    except ImportError as err:
        raise ImportError("vosk is required for recognition. Install with: pip install vosk") from err

    settings = settings or get_settings()
    vosk.SetLogLevel(settings.VOSK_LOG_LEVEL)

    model = None
    if os.path.isdir(settings.VOSK_MODEL_PATH):
        model = vosk.Model(settings.VOSK_MODEL_PATH)
        logger.info("Vosk model loaded: %s", settings.VOSK_MODEL_PATH)
    else:
        logger.warning("Vosk model directory not found: %s", settings.VOSK_MODEL_PATH)

    spk_model = None
    if settings.DIARIZATION_ENABLED:
        if os.path.isdir(settings.VOSK_SPK_MODEL_PATH):
            spk_model = vosk.SpkModel(settings.VOSK_SPK_MODEL_PATH)
            logger.info("Vosk speaker model loaded: %s", settings.VOSK_SPK_MODEL_PATH)
        else:
            logger.warning("Vosk speaker model directory not found: %s", settings.VOSK_SPK_MODEL_PATH)
    return model, spk_model


class VoskEngine(RecognitionEngine):
    """
    Vosk via KaldiRecognizer. Uses shared models (singleton).
    Not thread-safe on its own; RecognitionSession feeds it from one worker at a time.
    """

    def __init__(
        self,
        model: VoskModelT | None,
        spk_model: VoskSpkModelT | None = None,
        sample_rate: int | None = None,
        timeout_sec: float | None = None,
    ) -> None:
        settings = get_settings()
        self._model = model
        self._spk_model = spk_model
        self._sample_rate = sample_rate or settings.SAMPLE_RATE
        self._bytes_per_sec = self._sample_rate * settings.SAMPLE_WIDTH
        self._timeout_sec = timeout_sec if timeout_sec is not None else settings.RECOGNITION_TIMEOUT_SEC
        self._recognizer: Any = None
        self._listener: RecognitionListener | None = None
        self._listened_sec = 0.0

    def _new_recognizer(self) -> Any:
        from vosk import KaldiRecognizer

        if self._spk_model is not None:
            return KaldiRecognizer(self._model, float(self._sample_rate), self._spk_model)
        return KaldiRecognizer(self._model, float(self._sample_rate))

    def start_listening(self, listener: RecognitionListener) -> None:
        if self._model is None:
            raise RuntimeError("Recognition model not loaded")
        self._recognizer = self._new_recognizer()
        self._listener = listener
        self._listened_sec = 0.0

    def accept_audio(self, pcm: bytes) -> None:
        listener = self._listener
        if listener is None or self._recognizer is None or not pcm:
            return
        try:
            completed = self._recognizer.AcceptWaveform(pcm)
            hypothesis = self._recognizer.Result() if completed else self._recognizer.PartialResult()
        except Exception as e:
            logger.warning("Recognizer failed on audio buffer: %s", e)
            listener.on_error(e)
            return
        if completed:
            listener.on_result(hypothesis)
        else:
            listener.on_partial_result(hypothesis)

        self._listened_sec += len(pcm) / self._bytes_per_sec
        if self._timeout_sec > 0 and self._listened_sec >= self._timeout_sec and self._listener is listener:
            self._listener = None
            listener.on_timeout()

    def stop(self) -> None:
        listener, recognizer = self._listener, self._recognizer
        self._listener = None
        self._recognizer = None
        if listener is not None and recognizer is not None:
            listener.on_final_result(recognizer.FinalResult())

    @property
    def sample_rate(self) -> int:
        return self._sample_rate
