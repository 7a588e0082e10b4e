"""
Online speaker assignment for one recognition session.

- Every final utterance embedding is unit-normalized, then compared (cosine)
  against the centroid of each known profile in creation order.
- Best score wins with a strict ">" scan, so the earliest profile wins ties.
- Best score above the threshold joins that profile; otherwise a new label
  ("Speaker 1", "Speaker 2", ...) is minted.

Greedy single pass: no re-clustering, merging or removal; a past assignment
is never revisited.

Limitations (MUST be kept in sync with product behavior):
- Not robust to gradual embedding drift.
- Two acoustically close voices may share a label; one highly variable voice
  may be split into several labels.
- Labels are session-local; no enrollment, no cross-session identity.
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable

import numpy as np

from app.config import get_settings
from app.diarization.models import SpeakerProfile
from app.diarization.vectors import as_vector, cosine_similarity, is_degenerate, normalize

logger = logging.getLogger(__name__)


class EmbeddingDimensionError(ValueError):
    """Embedding length differs from the one established by the first embedding."""


class SpeakerRegistry:
    """
    Session-scoped set of speaker profiles.
    Created at session start, reset at session end; never shared across sessions.
    Thread-safe: the recognizer thread and a stop request may both touch it.
    """

    def __init__(
        self,
        similarity_threshold: float | None = None,
        label_prefix: str | None = None,
    ) -> None:
        settings = get_settings()
        self._threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else settings.DIARIZATION_SIMILARITY_THRESHOLD
        )
        self._prefix = label_prefix if label_prefix is not None else settings.DIARIZATION_SPEAKER_PREFIX
        self._lock = threading.RLock()
        self._profiles: dict[str, SpeakerProfile] = {}
        self._speaker_count = 0
        self._dimension: int | None = None

    @property
    def similarity_threshold(self) -> float:
        return self._threshold

    @property
    def dimension(self) -> int | None:
        """Embedding length fixed by the first embedding; None until then."""
        return self._dimension

    @property
    def speaker_count(self) -> int:
        return self._speaker_count

    @property
    def labels(self) -> list[str]:
        with self._lock:
            return list(self._profiles)

    @property
    def profiles(self) -> tuple[SpeakerProfile, ...]:
        """Snapshot of profiles in creation order."""
        with self._lock:
            return tuple(
                SpeakerProfile(label=p.label, embeddings=list(p.embeddings))
                for p in self._profiles.values()
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def summaries(self) -> list[tuple[str, int]]:
        """(label, utterance count) per profile, creation order."""
        with self._lock:
            return [(p.label, p.size) for p in self._profiles.values()]

    def best_match(self, normalized: np.ndarray) -> tuple[str | None, float]:
        """
        Highest cosine similarity between `normalized` and any profile centroid.
        Returns (label, score); (None, -inf) when there are no profiles.
        """
        best_label: str | None = None
        best_score = float("-inf")
        with self._lock:
            for label, profile in self._profiles.items():
                score = cosine_similarity(profile.centroid, normalized)
                if score > best_score:
                    best_label, best_score = label, score
        return best_label, best_score

    def identify_or_create(self, embedding: Iterable[float] | np.ndarray) -> str:
        """
        Assign the embedding to the best-matching speaker or mint a new one.
        Returns the speaker label.

        Raises ValueError for an empty embedding and EmbeddingDimensionError
        when its length differs from the session's established dimension.
        """
        vec = as_vector(embedding)
        if vec.size == 0:
            raise ValueError("embedding must be non-empty")

        with self._lock:
            if self._dimension is None:
                self._dimension = vec.size
            elif vec.size != self._dimension:
                raise EmbeddingDimensionError(
                    f"embedding has {vec.size} dimensions, session uses {self._dimension}"
                )

            if is_degenerate(vec):
                # Zero vector: similarity is 0.0 everywhere, so this always mints a speaker
                # whose zero centroid never matches later input.
                logger.warning("Degenerate speaker embedding (zero or non-finite magnitude)")
            normalized = normalize(vec)

            best_label, best_score = self.best_match(normalized)
            if best_label is not None and best_score > self._threshold:
                self._profiles[best_label].add(normalized)
                logger.debug("Embedding matched %s (similarity=%.3f)", best_label, best_score)
                return best_label

            self._speaker_count += 1
            label = f"{self._prefix}{self._speaker_count}"
            self._profiles[label] = SpeakerProfile(label=label, embeddings=[normalized])
            logger.debug(
                "New speaker %s (best similarity=%s)",
                label,
                "n/a" if best_label is None else f"{best_score:.3f}",
            )
            return label

    def reset(self) -> None:
        """Drop all profiles, the label counter and the established dimension."""
        with self._lock:
            self._profiles.clear()
            self._speaker_count = 0
            self._dimension = None
