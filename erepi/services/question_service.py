"""Question bank: loads practice sentences and picks the next question."""

import asyncio
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional, Union

import aiohttp
import yaml
from pydantic import BaseModel, Field, RootModel, ValidationError

from ..models.question import Level, Question

logger = logging.getLogger(__name__)


class QuestionEntry(BaseModel):
    """One question as written in the bank document."""
    english: str = Field(min_length=1)
    japanese: str = ""


class QuestionBankDocument(RootModel[Dict[Level, List[QuestionEntry]]]):
    """Whole bank document: level name -> questions."""


def parse_questions(raw_text: str, source: str = "<string>") -> Dict[Level, List[Question]]:
    """Parse a YAML or JSON question bank document.

    Raises:
        ValueError: if the document is malformed
    """
    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid question bank {source}: {e}") from e

    try:
        document = QuestionBankDocument.model_validate(data or {})
    except ValidationError as e:
        raise ValueError(f"Invalid question bank {source}: {e}") from e

    questions = {
        level: [Question(english=entry.english.strip(), japanese=entry.japanese.strip())
                for entry in entries]
        for level, entries in document.root.items()
    }
    if not any(questions.values()):
        raise ValueError(f"Question bank {source} contains no questions")
    return questions


async def fetch_questions_text(url: str, timeout: float = 10.0) -> str:
    """Download a question bank document."""
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise ValueError(f"Question bank download failed: {response.status} - {error_text[:200]}")
                return await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ValueError(f"Question bank download failed: {e}") from e


async def load_questions(source: str) -> Dict[Level, List[Question]]:
    """Load questions from a local file or an http(s) URL."""
    if source.startswith(("http://", "https://")):
        logger.info(f"Fetching question bank from {source}")
        raw_text = await fetch_questions_text(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Question bank not found: {source}")
        raw_text = path.read_text(encoding="utf-8")

    questions = parse_questions(raw_text, source)
    counts = ", ".join(f"{level.value}={len(items)}" for level, items in questions.items())
    logger.info(f"Question bank loaded: {counts}")
    return questions


class QuestionBank:
    """Holds the loaded questions, the selected level and the current question."""

    def __init__(self,
                 questions_data: Optional[Dict[Level, List[Question]]] = None,
                 level: Union[Level, str] = Level.BEGINNER,
                 rng: Optional[random.Random] = None):
        self.questions_data = questions_data
        self._level = Level(level)
        self.current_question: Optional[Question] = None
        self.rng = rng or random.Random()

    @classmethod
    async def from_source(cls, source: str, level: Union[Level, str] = Level.BEGINNER) -> "QuestionBank":
        return cls(await load_questions(source), level)

    @property
    def questions_loaded(self) -> bool:
        return bool(self.questions_data)

    @property
    def level(self) -> Level:
        return self._level

    @level.setter
    def level(self, value: Union[Level, str]) -> None:
        self._level = Level(value)
        logger.info(f"Level set to {self._level.value}")

    def cycle_level(self) -> Level:
        """Move to the next level, wrapping around."""
        levels = list(Level)
        self.level = levels[(levels.index(self._level) + 1) % len(levels)]
        return self._level

    def generate_question(self) -> Question:
        """Pick a random question from the current level.

        Raises:
            ValueError: if no questions are loaded for the level
        """
        candidates = (self.questions_data or {}).get(self._level) or []
        if not candidates:
            raise ValueError(f"No questions available for level '{self._level.value}'")
        self.current_question = self.rng.choice(candidates)
        logger.debug(f"New question ({self._level.value}): {self.current_question.english}")
        return self.current_question
