"""UI-related data models."""

from dataclasses import dataclass
from typing import Optional

from .practice import PracticeState
from .question import Question


@dataclass
class PracticeStatus:
    """Everything the presentation layer needs to render one frame."""
    state: PracticeState = PracticeState.IDLE
    level: str = "beginner"
    question: Optional[Question] = None
    is_recording: bool = False
    user_audio_path: Optional[str] = None
    is_model_ready: bool = False
    loading_status: str = ""
    is_processing: bool = False
    transcribed_text: str = ""
    is_correct: Optional[bool] = None
    status_message: str = ""
    can_record: bool = False
    recording_seconds: float = 0.0
    peak_level: float = 0.0
