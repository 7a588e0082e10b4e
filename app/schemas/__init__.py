"""Pydantic schemas for events and API responses."""
from app.schemas.events import (
    STATUS_ERROR,
    STATUS_STARTED,
    STATUS_STOPPED,
    STATUS_TIMEOUT,
    SpeakerSummary,
    SpeakersResponse,
    TranscriptEvent,
)

__all__ = [
    "STATUS_ERROR",
    "STATUS_STARTED",
    "STATUS_STOPPED",
    "STATUS_TIMEOUT",
    "SpeakerSummary",
    "SpeakersResponse",
    "TranscriptEvent",
]
