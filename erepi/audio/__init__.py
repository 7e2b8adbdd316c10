"""Audio capture and processing module."""

from .capture import AudioCapture, AudioCaptureError, PermissionDenied, DeviceUnavailable
from .player import ClipPlayer
from .processing import clip_to_float32

__all__ = [
    'AudioCapture',
    'AudioCaptureError',
    'PermissionDenied',
    'DeviceUnavailable',
    'ClipPlayer',
    'clip_to_float32',
]
