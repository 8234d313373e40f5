"""Data models for the DialogChat application."""

from .message import Message, Speaker, ControllerState
from .events import AudioEvent, AudioStatus
from .intent import (
    IntentResult,
    StreamingResult,
    StreamingConfig,
    BiasPhrases,
    DEFAULT_BIAS_PHRASES,
    DEFAULT_BIAS_BOOST,
)

__all__ = [
    "Message",
    "Speaker",
    "ControllerState",
    "AudioEvent",
    "AudioStatus",
    "IntentResult",
    "StreamingResult",
    "StreamingConfig",
    "BiasPhrases",
    "DEFAULT_BIAS_PHRASES",
    "DEFAULT_BIAS_BOOST",
]
