"""Audio input: PCM framing for the recognizer."""
from .receiver import AudioReceiver, buffer_bytes_for

__all__ = [
    "AudioReceiver",
    "buffer_bytes_for",
]
