"""Chat message data models."""

from dataclasses import dataclass
from enum import Enum


class Speaker(Enum):
    """Who authored a message."""
    USER = "user"
    BOT = "bot"

    @property
    def display_name(self) -> str:
        return "You" if self is Speaker.USER else "Bot"


@dataclass(frozen=True)
class Message:
    """A single chat turn. Never mutated after creation."""
    text: str
    speaker: Speaker
    sequence_index: int

    @property
    def is_user(self) -> bool:
        return self.speaker is Speaker.USER


class ControllerState(Enum):
    """Recording state of the session controller."""
    IDLE = "idle"
    RECORDING = "recording"
