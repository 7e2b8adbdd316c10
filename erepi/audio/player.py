"""Playback of the learner's recorded clip."""

import logging
import wave
from threading import Thread, Event
from typing import Optional

import pyaudio

logger = logging.getLogger(__name__)


class ClipPlayer:
    """Plays WAV clip handles on a background thread, one at a time."""

    def __init__(self, chunk_size: int = 1024):
        self.chunk_size = chunk_size
        self.stop_event = Event()
        self.playback_thread: Optional[Thread] = None

    @property
    def is_playing(self) -> bool:
        return self.playback_thread is not None and self.playback_thread.is_alive()

    def play(self, path: str) -> None:
        """Start playing ``path``, stopping any playback in progress."""
        self.stop()
        self.stop_event.clear()
        self.playback_thread = Thread(target=self._play_file, args=(path,), daemon=True)
        self.playback_thread.name = "ClipPlaybackThread"
        self.playback_thread.start()

    def stop(self) -> None:
        if self.is_playing:
            self.stop_event.set()
            self.playback_thread.join(timeout=2.0)
        self.playback_thread = None

    def _play_file(self, path: str) -> None:
        pyaudio_instance = pyaudio.PyAudio()
        stream = None
        try:
            with wave.open(path, 'rb') as wf:
                stream = pyaudio_instance.open(
                    format=pyaudio_instance.get_format_from_width(wf.getsampwidth()),
                    channels=wf.getnchannels(),
                    rate=wf.getframerate(),
                    output=True,
                )
                data = wf.readframes(self.chunk_size)
                while data and not self.stop_event.is_set():
                    stream.write(data)
                    data = wf.readframes(self.chunk_size)
            logger.debug(f"Finished playing {path}")
        except (OSError, wave.Error) as e:
            logger.error(f"Playback of {path} failed: {e}")
        finally:
            if stream:
                stream.stop_stream()
                stream.close()
            pyaudio_instance.terminate()
