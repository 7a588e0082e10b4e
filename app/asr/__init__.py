"""ASR: swappable streaming recognizers that emit JSON hypotheses."""
from .base import RecognitionEngine, RecognitionListener
from .vosk_engine import VoskEngine, load_vosk_models

__all__ = [
    "RecognitionEngine",
    "RecognitionListener",
    "VoskEngine",
    "load_vosk_models",
]
