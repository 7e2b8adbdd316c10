"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ModelState(Enum):
    """Lifecycle of the speech recognition model."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class TranscriptionResult:
    """Result of transcribing one clip."""
    text: str
    processing_time: float
    service: str
    language: str = "en"
    clip_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class EngineStatus:
    """Snapshot of the transcription engine for status displays."""
    model_state: ModelState
    loading_status: str = ""
    is_processing: bool = False
    error_message: Optional[str] = None

    @property
    def is_model_ready(self) -> bool:
        return self.model_state is ModelState.READY
