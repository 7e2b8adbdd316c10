"""Unit tests for clip conversion and clip files."""

import wave
import pytest
import numpy as np
from pathlib import Path

from erepi.audio.clip_writer import write_clip_file
from erepi.audio.processing import MODEL_SAMPLE_RATE, clip_to_float32
from erepi.models.audio import AudioClip


@pytest.mark.unit
class TestClipToFloat32:
    """Test cases for clip_to_float32."""

    def test_scaling(self):
        samples = np.array([0, 16384, -32768, 32767], dtype=np.int16)
        clip = AudioClip(clip_id="c", audio_data=samples.tobytes(), sample_rate=MODEL_SAMPLE_RATE)

        converted = clip_to_float32(clip)

        assert converted.dtype == np.float32
        np.testing.assert_allclose(converted, [0.0, 0.5, -1.0, 32767 / 32768], atol=1e-6)

    def test_stereo_is_downmixed(self):
        samples = np.array([1000, 3000, -2000, -4000], dtype=np.int16)
        clip = AudioClip(clip_id="c", audio_data=samples.tobytes(), sample_rate=MODEL_SAMPLE_RATE,
                         channels=2)

        converted = clip_to_float32(clip)

        np.testing.assert_allclose(converted, [2000 / 32768, -3000 / 32768], atol=1e-6)

    def test_resampling_to_model_rate(self):
        one_second = np.zeros(44100, dtype=np.int16).tobytes()
        clip = AudioClip(clip_id="c", audio_data=one_second, sample_rate=44100)

        converted = clip_to_float32(clip)

        assert len(converted) == MODEL_SAMPLE_RATE

    def test_empty_clip(self):
        clip = AudioClip(clip_id="c", audio_data=b'', sample_rate=44100)
        assert clip_to_float32(clip).size == 0

    def test_unsupported_sample_width(self):
        clip = AudioClip(clip_id="c", audio_data=b'\x00' * 8, sample_rate=16000, sample_width=4)
        with pytest.raises(ValueError):
            clip_to_float32(clip)


@pytest.mark.unit
class TestWriteClipFile:
    """Test cases for write_clip_file."""

    def test_writes_wav(self, temp_data_dir, sample_audio_chunk):
        clip = AudioClip(clip_id="clip_abc", audio_data=sample_audio_chunk, sample_rate=16000)

        path = write_clip_file(clip, Path(temp_data_dir) / "clips")

        assert path.parent == Path(temp_data_dir) / "clips"
        assert path.name.startswith("erepi_clip_abc_")
        assert path.suffix == ".wav"
        with wave.open(str(path), 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 16000
            assert wf.readframes(wf.getnframes()) == sample_audio_chunk

    def test_each_clip_gets_its_own_file(self, temp_data_dir, sample_audio_chunk):
        clip = AudioClip(clip_id="same", audio_data=sample_audio_chunk, sample_rate=16000)

        first = write_clip_file(clip, Path(temp_data_dir))
        second = write_clip_file(clip, Path(temp_data_dir))

        assert first != second
