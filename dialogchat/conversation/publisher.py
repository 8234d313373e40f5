"""Conversation publisher for pub/sub change notifications."""

import logging
from typing import Tuple
from pubsub import pub

from ..models.message import Message, ControllerState

logger = logging.getLogger(__name__)


class ConversationPublisher:
    """Publishes session controller changes using pubsub.pub."""

    def __init__(self, topic: str = "chat"):
        """Initialize conversation publisher.

        Args:
            topic: Root topic; changes go to ``<topic>.transcript``,
                ``<topic>.preview``, ``<topic>.state`` and ``<topic>.status``
        """
        self.transcript_topic = f"{topic}.transcript"
        self.preview_topic = f"{topic}.preview"
        self.state_topic = f"{topic}.state"
        self.status_topic = f"{topic}.status"
        logger.info(f"ConversationPublisher initialized with topic: {topic}")

    def _send(self, topic: str, **data) -> None:
        # A failing listener must not break the thread that published
        try:
            pub.sendMessage(topic, **data)
        except Exception as e:
            logger.exception(f"Listener on {topic} failed: {e}")

    def publish_transcript(self, messages: Tuple[Message, ...]) -> None:
        self._send(self.transcript_topic, messages=messages)

    def publish_preview(self, text: str) -> None:
        self._send(self.preview_topic, text=text)

    def publish_state(self, state: ControllerState) -> None:
        self._send(self.state_topic, state=state)

    def publish_status(self, message: str) -> None:
        self._send(self.status_topic, message=message)
        logger.debug(f"Published status: {message}")
