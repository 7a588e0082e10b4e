"""
Vector helpers for speaker embeddings (numpy).

Degenerate input (zero or non-finite magnitude) never divides by zero:
- normalize() returns an all-zero vector;
- cosine_similarity() returns 0.0 when either side has no usable magnitude.

Norms are computed on the vector divided by its largest component, so very
large finite embeddings still normalize instead of overflowing to inf.
"""
from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


def as_vector(values: Iterable[float] | np.ndarray) -> np.ndarray:
    """Coerce a sequence of numbers to a 1-D float64 array."""
    vec = np.asarray(values, dtype=np.float64)
    if vec.ndim != 1:
        raise ValueError(f"embedding must be 1-D, got shape {vec.shape}")
    return vec


def _scale(vec: np.ndarray) -> float:
    """Largest absolute component; norms are taken of vec / scale so they cannot overflow."""
    if vec.size == 0:
        return 0.0
    return float(np.max(np.abs(vec)))


def magnitude(vec: np.ndarray) -> float:
    """Euclidean length. inf only when a component is itself infinite."""
    scale = _scale(vec)
    if scale == 0.0 or not np.isfinite(scale):
        return scale
    return scale * float(np.linalg.norm(vec / scale))


def is_degenerate(vec: np.ndarray) -> bool:
    """True when the vector has no direction (zero, NaN or inf components)."""
    scale = _scale(vec)
    return scale == 0.0 or not np.isfinite(scale)


def normalize(vec: np.ndarray) -> np.ndarray:
    """Scale to unit length. Degenerate input yields zeros of the same shape."""
    if is_degenerate(vec):
        return np.zeros_like(vec, dtype=np.float64)
    scaled = vec / _scale(vec)
    return scaled / np.linalg.norm(scaled)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Dot product of the unit vectors; 0.0 if either side is degenerate."""
    if a.shape != b.shape:
        raise ValueError(f"dimension mismatch: {a.shape} vs {b.shape}")
    if is_degenerate(a) or is_degenerate(b):
        return 0.0
    return float(np.dot(normalize(a), normalize(b)))


def average_vectors(vectors: Sequence[np.ndarray]) -> np.ndarray:
    """Dimension-wise arithmetic mean."""
    if not vectors:
        raise ValueError("cannot average an empty list of vectors")
    # divide before summing so large components do not overflow
    return np.sum(np.stack(vectors) / len(vectors), axis=0)
