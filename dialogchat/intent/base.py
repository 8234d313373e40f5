"""Abstract base classes for conversational intent backends."""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator
import logging

from ..models.intent import IntentResult, StreamingConfig, StreamingResult

logger = logging.getLogger(__name__)


class AbstractIntentBackend(ABC):
    """Abstract base class for intent detection backends."""

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful
        """
        pass

    @abstractmethod
    def detect_intent(self, text: str, language_code: str) -> IntentResult:
        """Detect the intent of a single text query.

        Raises:
            BackendError: on network, auth or quota failure
        """
        pass

    @abstractmethod
    def streaming_detect_intent(self,
                                config: StreamingConfig,
                                audio_chunks: Iterable[bytes]) -> Iterator[StreamingResult]:
        """Stream audio chunks to the backend and yield results as they arrive.

        The call ends when ``audio_chunks`` is exhausted and the backend has
        sent its last result.

        Raises:
            BackendError: when the call cannot be established or fails mid-stream
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
