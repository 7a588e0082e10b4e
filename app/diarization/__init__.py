"""
Speaker diarization (online, unsupervised).

- Labels utterances with session-local speakers (Speaker 1, Speaker 2, ...)
  from recognizer speaker embeddings; no prior enrollment.
- Threshold-gated centroid clustering; see speaker_registry.py.

Limitations (see speaker_registry.py):
- Assignments are greedy and never revisited.
- Speaker labels are approximate; no real identity inference.
- Accuracy depends on mic quality and utterance length.
"""
from __future__ import annotations

from app.diarization.models import SpeakerProfile
from app.diarization.speaker_registry import (
    EmbeddingDimensionError,
    SpeakerRegistry,
)
from app.diarization.vectors import average_vectors, cosine_similarity, normalize

__all__ = [
    "EmbeddingDimensionError",
    "SpeakerProfile",
    "SpeakerRegistry",
    "average_vectors",
    "cosine_similarity",
    "normalize",
]
