"""Audio-related data models."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0


@dataclass
class AudioClip:
    """One finished recording of a single attempt.

    ``path`` is the playable handle: a WAV file owned by the capture unit.
    It is deleted by :meth:`release` once the clip is superseded.
    """
    clip_id: str
    audio_data: bytes
    sample_rate: int
    channels: int = 1
    sample_width: int = 2  # 16-bit audio
    path: Optional[Path] = None
    created_at: datetime = field(default_factory=datetime.now)
    released: bool = False

    @property
    def duration_seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * self.sample_width
        if not bytes_per_second:
            return 0.0
        return len(self.audio_data) / bytes_per_second

    @property
    def is_empty(self) -> bool:
        return not self.audio_data

    def release(self) -> None:
        """Delete the playable handle. Safe to call more than once."""
        if self.released:
            return
        self.released = True
        if self.path is not None:
            try:
                self.path.unlink()
                logger.debug(f"Released clip {self.clip_id}: {self.path}")
            except FileNotFoundError:
                logger.debug(f"Clip file already gone: {self.path}")
            except OSError as e:
                logger.warning(f"Could not delete clip file {self.path}: {e}")
            self.path = None
