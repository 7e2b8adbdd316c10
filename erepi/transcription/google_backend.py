"""Google Speech-to-Text transcription backend."""

import logging
from typing import Optional

from .base import AbstractTranscriptionBackend, ModelLoadFailed, TranscriptionFailed, ProgressCallback
from ..models.audio import AudioClip

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    name = "google"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 timeout: float = 10.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US', 'en-GB')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            timeout: Per-request timeout in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.timeout = timeout
        self.client = None
        self.project_id = None

    def load(self, progress: ProgressCallback) -> None:
        """Initialize Google Speech client and verify credentials."""
        progress("Connecting to Google Speech-to-Text...")
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError) as e:
            raise ModelLoadFailed(f"Invalid Google credentials: {e}") from e

        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

    def _recognition_config(self, clip: AudioClip) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=clip.sample_rate,
            audio_channel_count=clip.channels,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=True,
            # Use model optimized for short audio
            model="latest_short",
        )

    def transcribe(self, clip: AudioClip) -> str:
        """Transcribe a clip using Google Speech-to-Text."""
        if self.client is None:
            raise TranscriptionFailed("Google Speech client is not initialized")

        logger.debug(f"Clip ID: {clip.clip_id}; Audio size: {len(clip.audio_data)} bytes; Language: {self.language}")
        audio = speech.RecognitionAudio(content=clip.audio_data)
        try:
            response = self.client.recognize(config=self._recognition_config(clip),
                                             audio=audio, timeout=self.timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded for clip %s", clip.clip_id)
            raise TranscriptionFailed(f"Google Speech recognize timeout (clip={clip.clip_id}): {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for clip %s", clip.clip_id)
            raise TranscriptionFailed(f"Google Speech service unavailable (clip={clip.clip_id}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for clip %s: %s", clip.clip_id, e)
            raise TranscriptionFailed(f"Google Speech API error (clip={clip.clip_id}): {e}") from e

        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            return ""

        transcript = " ".join(result.alternatives[0].transcript.strip()
                              for result in response.results if result.alternatives)
        logger.debug(f"Transcript='{transcript}'")
        return transcript.strip()

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
