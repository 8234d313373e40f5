"""Abstract base class for audio capture sources."""

from abc import ABC, abstractmethod
import logging

from ..models.events import AudioStatus
from .audio_pub import AudioPublisher

logger = logging.getLogger(__name__)


class AbstractAudioSource(ABC):
    """A microphone-like source that publishes raw audio chunks.

    Chunks are published as ``AudioEvent`` on the publisher's frame topic
    while recording; status changes go to its status topic.
    """

    def __init__(self, publisher: AudioPublisher):
        self.publisher = publisher
        self._status = AudioStatus.IDLE

    @property
    def status(self) -> AudioStatus:
        return self._status

    def _set_status(self, status: AudioStatus) -> None:
        if status is self._status:
            return
        self._status = status
        logger.debug(f"Audio source status: {status.value}")
        self.publisher.publish_status(status)

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the device.

        Raises:
            DeviceError: if the device is unavailable or permission is denied
        """

    @abstractmethod
    def start(self) -> None:
        """Start publishing audio chunks."""

    @abstractmethod
    def stop(self) -> None:
        """Stop publishing audio chunks."""

    def cleanup(self) -> None:
        """Release device resources."""
