"""On-device Whisper backend using faster-whisper."""

import logging
import os
from typing import Optional

from .base import AbstractTranscriptionBackend, ModelLoadFailed, TranscriptionFailed, ProgressCallback
from ..audio.processing import clip_to_float32, MODEL_SAMPLE_RATE
from ..models.audio import AudioClip

logger = logging.getLogger(__name__)


class WhisperBackend(AbstractTranscriptionBackend):
    """Runs a Whisper model locally through CTranslate2."""

    name = "whisper"

    def __init__(self,
                 model_size: str = "base.en",
                 device: str = "cpu",
                 compute_type: str = "int8",
                 language: str = "en",
                 beam_size: int = 5,
                 download_root: Optional[str] = None):
        """Initialize Whisper backend.

        Args:
            model_size: Model name ('tiny.en', 'base.en', ...) or local model directory
            device: 'cpu', 'cuda' or 'auto'
            compute_type: CTranslate2 compute type ('int8', 'float16', ...)
            language: Language code passed to the decoder
            beam_size: Beam size used for decoding
            download_root: Directory for downloaded model files
        """
        super().__init__(language)
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.beam_size = beam_size
        self.download_root = download_root
        self.model = None

    def load(self, progress: ProgressCallback) -> None:
        try:
            from faster_whisper import WhisperModel, download_model

            if os.path.isdir(self.model_size):
                model_path = self.model_size
            else:
                progress(f"Downloading model '{self.model_size}'...")
                model_path = download_model(self.model_size, cache_dir=self.download_root)

            progress(f"Initializing model ({self.device}, {self.compute_type})...")
            self.model = WhisperModel(
                model_path,
                device=self.device,
                compute_type=self.compute_type,
            )
        except Exception as e:
            logger.error(f"Whisper model '{self.model_size}' failed to load: {e}", exc_info=True)
            raise ModelLoadFailed(f"Could not load Whisper model '{self.model_size}': {e}") from e

        logger.info(f"Whisper model '{self.model_size}' loaded on {self.device}")

    def transcribe(self, clip: AudioClip) -> str:
        if self.model is None:
            raise TranscriptionFailed("Whisper model is not loaded")

        audio = clip_to_float32(clip, MODEL_SAMPLE_RATE)
        logger.debug(f"Clip ID: {clip.clip_id}; {audio.size} samples; language: {self.language}")
        try:
            segments, info = self.model.transcribe(
                audio,
                language=self.language,
                beam_size=self.beam_size,
                condition_on_previous_text=False,
            )
            # segments is lazy; decoding happens while iterating
            text = " ".join(segment.text.strip() for segment in segments)
        except Exception as e:
            logger.error(f"Whisper inference failed for {clip.clip_id}: {e}")
            raise TranscriptionFailed(f"Whisper inference failed: {e}") from e

        logger.debug(f"Transcript='{text}' (audio duration {info.duration:.2f}s)")
        return text.strip()

    def cleanup(self) -> None:
        self.model = None
