"""Practice attempt state models."""

from enum import Enum
from typing import Optional


class PracticeState(Enum):
    """States of the record → transcribe → compare pipeline."""
    IDLE = "idle"
    QUESTION_ACTIVE = "question_active"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    VERDICTED = "verdicted"


class Verdict(Enum):
    """Correctness judgment for the current attempt."""
    UNDETERMINED = "undetermined"
    CORRECT = "correct"
    INCORRECT = "incorrect"

    @classmethod
    def from_match(cls, matched: bool) -> "Verdict":
        return cls.CORRECT if matched else cls.INCORRECT

    @property
    def is_correct(self) -> Optional[bool]:
        """Ternary view used by the presentation layer."""
        if self is Verdict.UNDETERMINED:
            return None
        return self is Verdict.CORRECT
