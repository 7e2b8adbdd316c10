"""Conversion of captured clips into model input."""

from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ..models.audio import AudioClip

MODEL_SAMPLE_RATE = 16000


def clip_to_float32(clip: AudioClip, target_rate: int = MODEL_SAMPLE_RATE) -> np.ndarray:
    """Mono float32 samples in [-1, 1] at ``target_rate``."""
    if clip.sample_width != 2:
        raise ValueError(f"Unsupported sample width: {clip.sample_width} bytes")

    samples = np.frombuffer(clip.audio_data, dtype=np.int16).astype(np.float32) / 32768.0
    if clip.channels > 1:
        usable = len(samples) - len(samples) % clip.channels
        samples = samples[:usable].reshape(-1, clip.channels).mean(axis=1)

    if clip.sample_rate != target_rate and samples.size:
        divisor = gcd(clip.sample_rate, target_rate)
        samples = resample_poly(samples, target_rate // divisor, clip.sample_rate // divisor)

    return np.ascontiguousarray(samples, dtype=np.float32)
