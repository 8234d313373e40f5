"""Dialogflow intent detection backend."""

import uuid
import logging
from typing import Iterable, Iterator, Optional

from google.cloud import dialogflow_v2beta1 as dialogflow
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

from .base import AbstractIntentBackend
from ..exceptions import BackendError
from ..models.intent import IntentResult, StreamingConfig, StreamingResult

logger = logging.getLogger(__name__)

# Errors raised by the SDK that map to BackendError
_SDK_ERRORS = (gax_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class DialogflowBackend(AbstractIntentBackend):
    """Dialogflow ES (v2beta1) Sessions API backend."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 project_id: Optional[str] = None,
                 session_id: Optional[str] = None,
                 request_timeout: float = 10.0,
                 stream_timeout: float = 300.0):
        """Initialize Dialogflow backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            project_id: Agent project; defaults to the service account's project
            session_id: Conversation session; a random one is generated if omitted
            request_timeout: Deadline in seconds for text requests
            stream_timeout: Deadline in seconds for a whole streaming session
        """
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Dialogflow credentials path is required - cannot initialize without credentials")
        self.project_id = project_id
        self.session_id = session_id or uuid.uuid4().hex
        self.request_timeout = request_timeout
        self.stream_timeout = stream_timeout
        self.client = None
        self.session_path: Optional[str] = None

    def initialize(self) -> bool:
        """Load credentials once and create the sessions client."""
        logger.info(f"Loading Dialogflow credentials from: {self.credentials_path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError) as e:
            raise BackendError("initialize", e) from e

        self.client = dialogflow.SessionsClient(credentials=credentials)
        self.project_id = self.project_id or credentials.project_id
        if not self.project_id:
            raise BackendError("initialize", ValueError("No project id in config or credentials"))
        self.session_path = self.client.session_path(self.project_id, self.session_id)
        logger.info(f"Using Dialogflow project: {self.project_id}, session: {self.session_id}")
        return True

    def _require_client(self) -> dialogflow.SessionsClient:
        if self.client is None:
            raise BackendError("client", RuntimeError("Backend not initialized"))
        return self.client

    def detect_intent(self, text: str, language_code: str) -> IntentResult:
        client = self._require_client()
        query_input = dialogflow.QueryInput(
            text=dialogflow.TextInput(text=text, language_code=language_code)
        )
        logger.debug(f"detect_intent: '{text}' ({language_code})")
        try:
            response = client.detect_intent(
                request={"session": self.session_path, "query_input": query_input},
                timeout=self.request_timeout,
            )
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Dialogflow detect_intent deadline exceeded")
            raise BackendError("detect_intent", e) from e
        except _SDK_ERRORS as e:
            logger.error(f"Dialogflow detect_intent failed: {e}")
            raise BackendError("detect_intent", e) from e

        query_result = response.query_result
        return IntentResult(
            query_text=query_result.query_text,
            fulfillment_text=query_result.fulfillment_text,
        )

    def build_audio_config(self, config: StreamingConfig) -> dialogflow.InputAudioConfig:
        speech_context = dialogflow.SpeechContext(
            phrases=list(config.bias_phrases.phrases),
            boost=config.bias_phrases.boost,
        )
        return dialogflow.InputAudioConfig(
            audio_encoding=dialogflow.AudioEncoding[config.encoding],
            language_code=config.language_code,
            sample_rate_hertz=config.sample_rate_hertz,
            single_utterance=config.single_utterance,
            speech_contexts=[speech_context],
        )

    def _request_stream(self,
                        audio_config: dialogflow.InputAudioConfig,
                        audio_chunks: Iterable[bytes]) -> Iterator[dialogflow.StreamingDetectIntentRequest]:
        # First request carries the config, the rest carry audio only
        yield dialogflow.StreamingDetectIntentRequest(
            session=self.session_path,
            query_input=dialogflow.QueryInput(audio_config=audio_config),
        )
        for chunk in audio_chunks:
            yield dialogflow.StreamingDetectIntentRequest(input_audio=chunk)
        logger.debug("Outbound audio stream closed")

    def streaming_detect_intent(self,
                                config: StreamingConfig,
                                audio_chunks: Iterable[bytes]) -> Iterator[StreamingResult]:
        client = self._require_client()
        audio_config = self.build_audio_config(config)
        logger.info(f"Opening streaming session: {config.encoding}, {config.sample_rate_hertz}Hz, "
                    f"{config.language_code}, single_utterance={config.single_utterance}")
        try:
            responses = client.streaming_detect_intent(
                requests=self._request_stream(audio_config, audio_chunks),
                timeout=self.stream_timeout,
            )
        except _SDK_ERRORS as e:
            logger.error(f"Dialogflow streaming call could not be opened: {e}")
            raise BackendError("streaming_detect_intent", e) from e

        try:
            for response in responses:
                yield self._to_streaming_result(response)
        except GeneratorExit:
            # Consumer stopped listening; drop the RPC
            cancel = getattr(responses, "cancel", None)
            if cancel is not None:
                cancel()
            raise
        except _SDK_ERRORS as e:
            logger.error(f"Dialogflow streaming call failed: {e}")
            raise BackendError("streaming_detect_intent", e) from e

    @staticmethod
    def _to_streaming_result(response: dialogflow.StreamingDetectIntentResponse) -> StreamingResult:
        recognition = response.recognition_result
        query_result = response.query_result
        is_final = bool(recognition.is_final)
        return StreamingResult(
            partial_transcript="" if is_final else recognition.transcript,
            is_final=is_final,
            query_text=query_result.query_text,
            fulfillment_text=query_result.fulfillment_text,
        )

    def cleanup(self) -> None:
        """Close the gRPC transport."""
        if self.client is not None:
            self.client.transport.close()
            self.client = None
