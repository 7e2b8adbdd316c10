"""Builds the configured transcription backend and engine."""

import logging

from ..transcription import (
    AbstractTranscriptionBackend,
    GoogleSpeechBackend,
    TranscriptionEngine,
    WhisperBackend,
)
from ..config import ErepiConfig

logger = logging.getLogger(__name__)


class TranscriptionService:
    """Creates the speech recognition backend selected in the configuration."""

    BACKENDS = ("whisper", "google")

    def __init__(self, config: ErepiConfig):
        """Initialize transcription service.

        Args:
            config: Application configuration
        """
        self.config = config

    def create_engine(self) -> TranscriptionEngine:
        """Create the engine; the model is not loaded until requested."""
        return TranscriptionEngine(self.create_backend())

    def create_backend(self) -> AbstractTranscriptionBackend:
        backend_name = self.config.get('transcription.backend', 'whisper')
        if backend_name == 'whisper':
            return self._create_whisper_backend()
        if backend_name == 'google':
            return self._create_google_speech_backend()
        raise ValueError(f"Unknown transcription backend '{backend_name}', expected one of {self.BACKENDS}")

    def _create_whisper_backend(self) -> WhisperBackend:
        model_size = self.config.get('transcription.whisper.model_size', 'base.en')
        device = self.config.get('transcription.whisper.device', 'cpu')
        compute_type = self.config.get('transcription.whisper.compute_type', 'int8')

        logger.info(f"Using Whisper backend: model={model_size}, device={device}, compute_type={compute_type}")
        return WhisperBackend(
            model_size=model_size,
            device=device,
            compute_type=compute_type,
            language=self.config.get('transcription.whisper.language', 'en'),
            beam_size=self.config.get('transcription.whisper.beam_size', 5),
            download_root=self.config.get('transcription.whisper.download_root'),
        )

    def _create_google_speech_backend(self) -> GoogleSpeechBackend:
        credentials_path = self.config.get_google_credentials_path()
        language = self.config.get('transcription.google.language', 'en-US')
        use_enhanced = self.config.get('transcription.google.use_enhanced', True)

        logger.info("Using Google Speech backend")
        logger.debug(f"Config: language={language}, enhanced={use_enhanced}")
        return GoogleSpeechBackend(
            credentials_path=credentials_path,
            language=language,
            use_enhanced=use_enhanced,
            timeout=self.config.get('transcription.google.timeout_seconds', 10.0),
        )
