"""
Events pushed to the client over WebSocket, and HTTP response models.

partial: { "type": "partial", "result": "..." }
final:   { "type": "final", "result": "...", "speaker": "Speaker 1" }
status:  { "type": "status", "result": "Recognition started" | ... }
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

STATUS_STARTED = "Recognition started"
STATUS_ERROR = "Recognition error"
STATUS_TIMEOUT = "Recognition timeout"
STATUS_STOPPED = "Recognition stopped"


class TranscriptEvent(BaseModel):
    """One event on the live stream. speaker is set on final events only."""

    type: Literal["partial", "final", "status"]
    result: str = Field(..., description="Hypothesis text, or status text for status events")
    speaker: str | None = Field(None, description="Speaker label (final only)")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SpeakerSummary(BaseModel):
    """One tracked speaker in the current session."""

    label: str
    utterances: int = Field(..., ge=1, description="Final utterances assigned to this speaker")


class SpeakersResponse(BaseModel):
    """Response body for GET /api/sessions/{session_id}/speakers."""

    session_id: str
    speakers: list[SpeakerSummary] = Field(default_factory=list)
