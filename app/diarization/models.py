"""
Speaker profile held by the registry for one recognition session.

Each profile includes:
- label (e.g. "Speaker 1"); stable for the session, never reused
- embeddings: unit-normalized member embeddings, in assignment order

The centroid is derived on every access (mean of members) and is bounded
but not necessarily unit length.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from app.diarization.vectors import average_vectors


@dataclass
class SpeakerProfile:
    """One tracked speaker: label plus the normalized embeddings assigned to it."""

    label: str
    embeddings: list[np.ndarray] = field(default_factory=list)

    @property
    def centroid(self) -> np.ndarray:
        return average_vectors(self.embeddings)

    @property
    def size(self) -> int:
        return len(self.embeddings)

    def add(self, embedding: np.ndarray) -> None:
        self.embeddings.append(embedding)
