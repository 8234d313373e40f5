"""Event models for pub/sub audio processing."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AudioStatus(Enum):
    """Status reported by an audio capture source."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None

    def __post_init__(self):
        if self.chunk_duration_ms is None and self.audio_data:
            # 16-bit audio, 2 bytes per sample
            bytes_per_second = self.sample_rate * self.channels * 2
            self.chunk_duration_ms = int(len(self.audio_data) / bytes_per_second * 1000)
