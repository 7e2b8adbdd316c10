"""Pytest configuration and fixtures for Eリピ tests."""

import pytest
import tempfile
import time
import logging
from unittest.mock import Mock, patch
import numpy as np

from erepi.models.audio import AudioClip
from erepi.models.question import Level, Question
from erepi.services.question_service import QuestionBank
from erepi.transcription.base import (
    AbstractTranscriptionBackend,
    ModelLoadFailed,
    TranscriptionFailed,
)


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without audio hardware")
    config.addinivalue_line("markers", "integration: several real components wired together")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767 * 0.5).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read_chunk(chunk_size, exception_on_overflow=True):
            # Pace the recording thread like a real device would
            time.sleep(0.005)
            return b'\x00' * (chunk_size * 2)  # Silent audio

        # Configure mock stream
        mock_stream.read.side_effect = read_chunk
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def make_clip(sample_audio_chunk):
    """Build in-memory clips."""
    def _make_clip(audio_data=None, clip_id="clip_test", sample_rate=16000, channels=1):
        if audio_data is None:
            audio_data = sample_audio_chunk * 10
        return AudioClip(clip_id=clip_id, audio_data=audio_data,
                         sample_rate=sample_rate, channels=channels)
    return _make_clip


@pytest.fixture
def questions_data():
    return {
        Level.BEGINNER: [Question("How are you?", "元気ですか？")],
        Level.ELEMENTARY: [Question("I like apples.", "私はりんごが好きです。")],
    }


@pytest.fixture
def question_bank(questions_data):
    return QuestionBank(questions_data, Level.BEGINNER)


class FakeBackend(AbstractTranscriptionBackend):
    """Scriptable recognition backend.

    ``transcripts`` are returned in order by successive transcribe calls;
    exceptions in the list are raised instead.
    """

    name = "fake"

    def __init__(self, transcripts=("How are you?",), load_error=None, load_delay=0.0,
                 transcribe_delay=0.0, progress_messages=()):
        super().__init__(language="en")
        self.transcripts = list(transcripts)
        self.load_error = load_error
        self.load_delay = load_delay
        self.transcribe_delay = transcribe_delay
        self.progress_messages = list(progress_messages)
        self.load_calls = 0
        self.transcribed_clips = []
        self.cleaned_up = False

    def load(self, progress):
        self.load_calls += 1
        for message in self.progress_messages:
            progress(message)
        if self.load_delay:
            time.sleep(self.load_delay)
        if self.load_error is not None:
            raise self.load_error

    def transcribe(self, clip):
        self.transcribed_clips.append(clip)
        if self.transcribe_delay:
            time.sleep(self.transcribe_delay)
        text = self.transcripts.pop(0) if len(self.transcripts) > 1 else self.transcripts[0]
        if isinstance(text, Exception):
            raise text
        return text

    def cleanup(self):
        self.cleaned_up = True


@pytest.fixture
def fake_backend_class():
    return FakeBackend


@pytest.fixture
def load_failure():
    return ModelLoadFailed("model files missing")


@pytest.fixture
def inference_failure():
    return TranscriptionFailed("decoder crashed")
