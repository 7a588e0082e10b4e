"""
Parsing of recognizer hypothesis records (Vosk JSON).

partial: {"partial": "hel"}
final:   {"text": "hello", "spk": [0.1, ...], "spk_frames": 120, "result": [...]}

Parsing is tolerant: missing or oddly typed optional fields become None.
Only input that is not a JSON object at all raises HypothesisParseError.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class HypothesisParseError(ValueError):
    """Hypothesis is not a well-formed JSON object."""


class Hypothesis(BaseModel):
    """One recognizer message. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    partial: str | None = None
    text: str | None = None
    spk: list[float] | None = None

    @field_validator("partial", "text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        logger.debug("Ignoring non-text hypothesis field: %r", value)
        return None

    @field_validator("spk", mode="before")
    @classmethod
    def _coerce_embedding(cls, value: Any) -> list[float] | None:
        if value is None:
            return None
        if not isinstance(value, list) or not all(
            isinstance(x, (int, float)) and not isinstance(x, bool) for x in value
        ):
            logger.debug("Ignoring malformed speaker embedding of type %s", type(value).__name__)
            return None
        try:
            return [float(x) for x in value]
        except (OverflowError, ValueError):
            logger.debug("Ignoring speaker embedding with values out of float range")
            return None

    @property
    def embedding(self) -> np.ndarray | None:
        """Speaker embedding as a float vector; None when absent or empty."""
        if not self.spk:
            return None
        return np.asarray(self.spk, dtype=np.float64)


def parse_hypothesis(raw: str | bytes) -> Hypothesis:
    """Parse one recognizer message. Raises HypothesisParseError if not a JSON object."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise HypothesisParseError(f"hypothesis is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise HypothesisParseError(f"hypothesis must be a JSON object, got {type(data).__name__}")
    return Hypothesis.model_validate(data)
