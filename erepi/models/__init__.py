"""Data models for the Eリピ pronunciation practice application."""

from .question import Question, Level
from .audio import AudioStats, AudioClip
from .transcription import ModelState, TranscriptionResult, EngineStatus
from .practice import PracticeState, Verdict
from .ui import PracticeStatus

__all__ = [
    "Question",
    "Level",
    "AudioStats",
    "AudioClip",
    "ModelState",
    "TranscriptionResult",
    "EngineStatus",
    "PracticeState",
    "Verdict",
    "PracticeStatus",
]
