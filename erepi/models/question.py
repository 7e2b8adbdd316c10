"""Question-related data models."""

from dataclasses import dataclass
from enum import Enum


class Level(Enum):
    """Difficulty levels offered by the question bank."""
    BEGINNER = "beginner"
    ELEMENTARY = "elementary"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class Question:
    """A sentence to pronounce together with its translation."""
    english: str
    japanese: str
