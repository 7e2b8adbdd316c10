"""Transcription module for Eリピ."""

from .base import (
    AbstractTranscriptionBackend,
    TranscriptionError,
    ModelLoadFailed,
    TranscriptionFailed,
)
from .engine import TranscriptionEngine
from .whisper_backend import WhisperBackend
from .google_backend import GoogleSpeechBackend
from ..models.transcription import TranscriptionResult

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionError",
    "ModelLoadFailed",
    "TranscriptionFailed",
    "TranscriptionEngine",
    "TranscriptionResult",
    "WhisperBackend",
    "GoogleSpeechBackend",
]
