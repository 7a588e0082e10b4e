"""Tests for PCM framing."""
from app.audio.receiver import AudioReceiver, buffer_bytes_for


def test_default_buffer_is_200ms_at_16k():
    assert buffer_bytes_for(16000, 2, 200) == 6400
    assert AudioReceiver().frame_bytes == 6400


def test_frames_and_remainder():
    receiver = AudioReceiver(frame_bytes=4)
    receiver.feed(b"abcdefghij")
    assert receiver.drain_frames() == [b"abcd", b"efgh"]
    assert receiver.remaining_bytes() == 2
    receiver.feed(b"kl")
    assert receiver.drain_frames() == [b"ijkl"]


def test_flush_returns_remainder_once():
    receiver = AudioReceiver(frame_bytes=4)
    receiver.feed(b"abcdef")
    receiver.drain_frames()
    assert receiver.flush() == b"ef"
    assert receiver.flush() == b""
