"""Transcript: hypothesis parsing, result dispatch, append-only persistence."""
from .dispatcher import ResultDispatcher
from .hypothesis import Hypothesis, HypothesisParseError, parse_hypothesis
from .writer import TranscriptWriter, TranscriptWriterBase, create_transcript_writer

__all__ = [
    "Hypothesis",
    "HypothesisParseError",
    "ResultDispatcher",
    "TranscriptWriter",
    "TranscriptWriterBase",
    "create_transcript_writer",
    "parse_hypothesis",
]
