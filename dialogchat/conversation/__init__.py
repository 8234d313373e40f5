"""Conversation session layer."""

from .channel import AudioChannel
from .controller import SessionController, RecordingSession
from .publisher import ConversationPublisher
from .transcript import Transcript

__all__ = [
    "AudioChannel",
    "SessionController",
    "RecordingSession",
    "ConversationPublisher",
    "Transcript",
]
