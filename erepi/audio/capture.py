"""Microphone capture of one discrete clip per practice attempt."""

import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path
from threading import Thread, Event, Lock
from typing import Optional, List

import numpy as np
import pyaudio

from ..models.audio import AudioClip, AudioStats
from .clip_writer import write_clip_file

logger = logging.getLogger(__name__)

# PortAudio error codes that mean "there is no usable input device"
_DEVICE_ERROR_CODES = {
    -9996,  # paInvalidDevice
    -9985,  # paDeviceUnavailable
    -9998,  # paInvalidChannelCount
    -9997,  # paInvalidSampleRate
}


class AudioCaptureError(Exception):
    """Microphone access could not be granted."""


class PermissionDenied(AudioCaptureError):
    """The OS refused access to the microphone."""


class DeviceUnavailable(AudioCaptureError):
    """No usable input device."""


def _classify_stream_error(error: Exception) -> AudioCaptureError:
    if isinstance(error, PermissionError) or "permission" in str(error).lower():
        return PermissionDenied(f"Microphone permission denied: {error}")
    code = error.args[0] if error.args and isinstance(error.args[0], int) else None
    if code in _DEVICE_ERROR_CODES:
        return DeviceUnavailable(f"Microphone unavailable ({code}): {error}")
    return DeviceUnavailable(f"Could not open microphone: {error}")


class AudioCapture:
    """Records microphone input into a single clip per recording.

    ``start_recording`` returns a future that ``stop_recording`` resolves
    with the finished :class:`AudioClip`. ``reset_audio`` abandons an
    in-progress recording by cancelling that future.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
        input_device_index: Optional[int] = None,
        clip_directory: Optional[str] = None,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for Whisper compatibility)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
            input_device_index: PortAudio input device, None for the default
            clip_directory: Where clip WAV files are written, None for temp dir
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.input_device_index = input_device_index
        self.clip_directory = Path(clip_directory) if clip_directory else None

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Audio of the recording in progress
        self.frames: List[bytes] = []
        self.frames_lock = Lock()
        self.current_clip: Optional[AudioClip] = None
        self._clip_future: Optional[asyncio.Future] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        # PyAudio instance
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None

    @property
    def user_audio_path(self) -> Optional[str]:
        """Playable handle of the current clip."""
        if self.current_clip is None or self.current_clip.path is None:
            return None
        return str(self.current_clip.path)

    def start_recording(self) -> asyncio.Future:
        """Open the microphone and start recording in a background thread.

        Must be called from the event loop thread.

        Returns:
            Future resolved with the AudioClip when recording stops

        Raises:
            PermissionDenied: microphone access refused
            DeviceUnavailable: no usable input device
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return self._clip_future

        loop = asyncio.get_running_loop()
        self._release_current_clip()
        self.stream = self.__open_audio_stream()

        logger.info("Starting audio recording")
        self.stop_event.clear()
        with self.frames_lock:
            self.frames = []
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0
        self._clip_future = loop.create_future()

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True
        return self._clip_future

    def stop_recording(self) -> Optional[AudioClip]:
        """Finish the recording and resolve the pending future with the clip.

        Stopping without an active recording is a no-op. If the clip cannot
        be saved, the future fails with :class:`AudioCaptureError` and None
        is returned.
        """
        if not self.is_recording:
            logger.debug("No recording in progress")
            return None

        logger.info("Stopping audio recording")
        self._join_recording_thread()
        future, self._clip_future = self._clip_future, None

        try:
            clip = self._build_clip()
        except OSError as e:
            error = AudioCaptureError(f"Could not save recording: {e}")
            logger.error(f"Failed to save clip: {e}")
            if future is not None and not future.done():
                future.set_exception(error)
            return None

        self.current_clip = clip
        if future is not None and not future.done():
            future.set_result(clip)

        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}, "
                    f"duration: {clip.duration_seconds:.2f}s")
        return clip

    def reset_audio(self) -> None:
        """Discard the current clip, abandoning a recording in progress."""
        if self.is_recording:
            logger.info("Abandoning recording in progress")
            self._join_recording_thread()
            with self.frames_lock:
                self.frames = []
            future, self._clip_future = self._clip_future, None
            if future is not None and not future.done():
                future.cancel()
        self._release_current_clip()

    def _join_recording_thread(self) -> None:
        self.stop_event.set()
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
        self.recording_thread = None
        self.is_recording = False

    def _release_current_clip(self) -> None:
        if self.current_clip is not None:
            self.current_clip.release()
            self.current_clip = None

    def _build_clip(self) -> AudioClip:
        with self.frames_lock:
            audio_data = b''.join(self.frames)
            self.frames = []
        clip = AudioClip(
            clip_id=f"clip_{uuid.uuid4().hex[:8]}",
            audio_data=audio_data,
            sample_rate=self.sample_rate,
            channels=self.channels,
            sample_width=pyaudio.get_sample_size(self.format),
        )
        if not clip.is_empty:
            clip.path = write_clip_file(clip, self.clip_directory)
        return clip

    def __open_audio_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.input_device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (OSError, ValueError) as e:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            error = _classify_stream_error(e)
            logger.error(f"Failed to open audio stream: {error}")
            raise error from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream) -> bytes:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        if audio_chunk:
            samples = np.frombuffer(audio_chunk, dtype=np.int16)
            if samples.size:
                level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0
                self.peak_level = max(self.peak_level, level)
        return audio_chunk

    def _record_continuously(self) -> None:
        """Internal method: recording loop in background thread."""
        stream = self.stream
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk(stream)
                with self.frames_lock:
                    self.frames.append(audio_chunk)
        except OSError as e:
            logger.error(f"Audio stream read failed: {e}")
        finally:
            # Clean up audio resources
            if stream:
                stream.stop_stream()
                stream.close()
            self.stream = None
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time and self.is_recording:
            duration = (datetime.now() - self.start_time).total_seconds()
        elif self.current_clip is not None:
            duration = self.current_clip.duration_seconds

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.stop_event.set()
