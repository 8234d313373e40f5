"""Audio publisher module for pub/sub event publishing."""

import logging
from typing import Callable, Any
from pubsub import pub
from ..models.events import AudioEvent, AudioStatus

logger = logging.getLogger(__name__)


class Subscription:
    """Cancelable handle for a pubsub listener.

    pubsub only keeps weak references to listeners, so the handle holds the
    strong one for as long as the subscription is live.
    """

    def __init__(self, topic: str, listener: Callable[..., Any]):
        self.topic = topic
        self._listener = listener
        pub.subscribe(self._listener, self.topic)
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        if pub.isSubscribed(self._listener, self.topic):
            pub.unsubscribe(self._listener, self.topic)
        logger.debug(f"Subscription to {self.topic} canceled")


class AudioPublisher:
    """Publishes audio events using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = "audio"):
        """Initialize audio publisher.

        Args:
            topic: Root topic name; frames go to ``<topic>.frame`` and status
                changes to ``<topic>.status``
        """
        self.frame_topic = f"{topic}.frame"
        self.status_topic = f"{topic}.status"
        logger.info(f"AudioPublisher initialized with topics: {self.frame_topic}, {self.status_topic}")

    def publish_audio_event(self, audio_event: AudioEvent) -> None:
        """Publish an audio event to the frame topic."""
        pub.sendMessage(self.frame_topic, event=audio_event)

    def publish_status(self, status: AudioStatus) -> None:
        pub.sendMessage(self.status_topic, status=status)

    def subscribe_frames(self, listener: Callable[[AudioEvent], None]) -> Subscription:
        """Subscribe ``listener(event)`` to audio frames."""
        return Subscription(self.frame_topic, listener)

    def subscribe_status(self, listener: Callable[[AudioStatus], None]) -> Subscription:
        """Subscribe ``listener(status)`` to status changes."""
        return Subscription(self.status_topic, listener)
