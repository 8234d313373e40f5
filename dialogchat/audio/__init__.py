"""Audio capture module."""

from .audio_pub import AudioPublisher, Subscription
from .base import AbstractAudioSource
from .capture import AudioCapture

__all__ = [
    'AudioPublisher',
    'Subscription',
    'AbstractAudioSource',
    'AudioCapture',
]
