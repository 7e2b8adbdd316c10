"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from typing import Callable
import logging

from ..models.audio import AudioClip

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class TranscriptionError(Exception):
    """Base class for speech recognition failures."""


class ModelLoadFailed(TranscriptionError):
    """The speech recognition model could not be loaded."""


class TranscriptionFailed(TranscriptionError):
    """Inference failed on a given clip."""


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends.

    Backends are driven from a single worker thread owned by the
    TranscriptionEngine and never entered concurrently.
    """

    name = "backend"

    def __init__(self, language: str = "en"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def load(self, progress: ProgressCallback) -> None:
        """Load the model, blocking until it can accept audio.

        Args:
            progress: Called with human-readable loading status updates

        Raises:
            ModelLoadFailed: if the model cannot be loaded
        """
        pass

    @abstractmethod
    def transcribe(self, clip: AudioClip) -> str:
        """Transcribe a finished clip.

        Args:
            clip: Recorded audio clip

        Returns:
            Recognized text, possibly empty when no speech was found

        Raises:
            TranscriptionFailed: if inference fails
        """
        pass

    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
