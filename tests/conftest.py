"""Shared fixtures: a scripted recognition engine and an event collector."""
from __future__ import annotations

import json

import pytest

from app.asr.base import RecognitionEngine, RecognitionListener


class FakeEngine(RecognitionEngine):
    """
    Scripted engine: every accept_audio() call plays the next step.
    Steps: ("partial", json) | ("result", json) | ("error", message) | ("timeout", None).
    """

    def __init__(self, script=None, fail_start: bool = False) -> None:
        self.script = list(script or [])
        self.fail_start = fail_start
        self.listener: RecognitionListener | None = None
        self.starts = 0
        self.stops = 0
        self.fed: list[bytes] = []

    def start_listening(self, listener: RecognitionListener) -> None:
        if self.fail_start:
            raise RuntimeError("Recognition model not loaded")
        self.listener = listener
        self.starts += 1

    def accept_audio(self, pcm: bytes) -> None:
        self.fed.append(pcm)
        if self.listener is None or not self.script:
            return
        kind, value = self.script.pop(0)
        if kind == "partial":
            self.listener.on_partial_result(value)
        elif kind == "result":
            self.listener.on_result(value)
        elif kind == "error":
            self.listener.on_error(RuntimeError(value))
        elif kind == "timeout":
            self.listener.on_timeout()

    def stop(self) -> None:
        self.stops += 1
        listener, self.listener = self.listener, None
        if listener is not None:
            listener.on_final_result(json.dumps({"text": ""}))

    @property
    def sample_rate(self) -> int:
        return 16000


@pytest.fixture
def fake_engine_cls():
    return FakeEngine


@pytest.fixture
def events():
    """List used as event sink: pass events.append as on_event."""
    return []
