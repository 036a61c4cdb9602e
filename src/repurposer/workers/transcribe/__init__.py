"""Transcribe worker: acquires video transcripts through the job runner."""

from .worker import TranscribeWorker, TranscriptionOutcome, TranscriptionState, get_transcribe_worker

__all__ = [
    "TranscribeWorker",
    "TranscriptionOutcome",
    "TranscriptionState",
    "get_transcribe_worker",
]
