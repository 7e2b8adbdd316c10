"""Services layer for Eリピ application logic."""

from .practice_service import PracticeSession
from .publisher import StatusPublisher, PRACTICE_STATUS_TOPIC
from .question_service import QuestionBank, load_questions, parse_questions
from .speech_service import SpeechSynthesizer, select_english_voice
from .transcription_service import TranscriptionService

__all__ = [
    "PracticeSession",
    "StatusPublisher",
    "PRACTICE_STATUS_TOPIC",
    "QuestionBank",
    "load_questions",
    "parse_questions",
    "SpeechSynthesizer",
    "select_english_voice",
    "TranscriptionService",
]
