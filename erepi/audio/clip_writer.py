"""Writes clips to WAV files so they can be played back."""

import logging
import tempfile
import wave
from pathlib import Path
from typing import Optional

from ..models.audio import AudioClip

logger = logging.getLogger(__name__)


def write_clip_file(clip: AudioClip, directory: Optional[Path] = None) -> Path:
    """Save a clip to a new WAV file.

    Args:
        clip: Clip to save
        directory: Target directory, None for the system temp directory

    Returns:
        Path of the written file
    """
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        prefix=f"erepi_{clip.clip_id}_", suffix=".wav",
        dir=str(directory) if directory else None, delete=False
    )
    path = Path(handle.name)
    handle.close()

    try:
        with wave.open(str(path), 'wb') as wf:
            wf.setnchannels(clip.channels)
            wf.setsampwidth(clip.sample_width)
            wf.setframerate(clip.sample_rate)
            wf.writeframes(clip.audio_data)
    except Exception as e:
        logger.error(f"Error saving audio file: {e}")
        path.unlink(missing_ok=True)
        raise

    logger.debug(f"Audio saved to {path}")
    return path
