"""Session controller: transcript, recording state and streaming lifecycle."""

import uuid
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from ..audio.audio_pub import Subscription
from ..audio.base import AbstractAudioSource
from ..exceptions import BackendError, DeviceError, StreamTerminated
from ..intent.base import AbstractIntentBackend
from ..models.events import AudioEvent, AudioStatus
from ..models.intent import IntentResult, StreamingConfig, StreamingResult
from ..models.message import ControllerState, Speaker
from .channel import AudioChannel
from .publisher import ConversationPublisher
from .transcript import Transcript

logger = logging.getLogger(__name__)


class RecordingSession:
    """Resources owned by one live streaming exchange."""

    def __init__(self, channel: AudioChannel):
        self.session_id = uuid.uuid4().hex[:8]
        self.channel = channel
        self.audio_subscription: Optional[Subscription] = None
        self.status_subscription: Optional[Subscription] = None
        self.result_thread: Optional[threading.Thread] = None
        self.cancelled = threading.Event()
        self.results_received = 0
        self.exchanges_completed = 0

    def cancel(self) -> None:
        """Release the audio subscriptions, close the channel and drop further results."""
        if self.status_subscription:
            self.status_subscription.cancel()
        if self.audio_subscription:
            self.audio_subscription.cancel()
        self.channel.close()
        self.cancelled.set()


class SessionController:
    """Mediates text chat and live audio chat, and owns the transcript.

    All state is guarded by one re-entrant lock because results arrive on
    the capture thread, the streaming result thread and the request worker.
    Notifications are published after the lock is released.

    Text requests run one at a time on a single worker, so Bot replies are
    appended in the order the messages were submitted.
    """

    def __init__(self,
                 backend: AbstractIntentBackend,
                 audio_source: AbstractAudioSource,
                 streaming_config: Optional[StreamingConfig] = None,
                 publisher: Optional[ConversationPublisher] = None,
                 join_timeout: float = 2.0):
        self.backend = backend
        self.audio_source = audio_source
        self.streaming_config = streaming_config or StreamingConfig()
        self.publisher = publisher or ConversationPublisher()
        self.join_timeout = join_timeout

        self.transcript = Transcript()
        self.status_message = ""
        self._pending_input = ""
        self._state = ControllerState.IDLE
        self._session: Optional[RecordingSession] = None
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="DetectIntent")
        self._closed = False

    @property
    def language_code(self) -> str:
        return self.streaming_config.language_code

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is ControllerState.RECORDING

    @property
    def pending_input(self) -> str:
        return self._pending_input

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Session controller is closed")

    # ------------------------------------------------------------------
    # Text turns
    # ------------------------------------------------------------------

    def submit_text(self, text: str) -> "Future[Optional[IntentResult]]":
        """Append a User message and send it to the backend.

        Any string is accepted as-is. Returns a future for the backend round
        trip; it resolves to None when the request failed.
        """
        with self._lock:
            self._ensure_open()
            self.transcript.append(text, Speaker.USER)
            self._pending_input = ""
            messages = self.transcript.messages
            future = self._executor.submit(self._detect_intent, text)

        logger.info(f"User message submitted ({len(text)} chars)")
        self.publisher.publish_transcript(messages)
        self.publisher.publish_preview("")
        return future

    def _detect_intent(self, text: str) -> Optional[IntentResult]:
        try:
            result = self.backend.detect_intent(text, self.language_code)
        except BackendError as e:
            logger.error(f"Text request failed: {e}")
            self._report_status(f"Message not delivered: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error in text request: {e}")
            self._report_status(f"Message not delivered: {e}")
            raise

        if not result.fulfillment_text:
            logger.debug("Backend returned no fulfillment text")
            return result

        with self._lock:
            if self._closed:
                return result
            self.transcript.append(result.fulfillment_text, Speaker.BOT)
            messages = self.transcript.messages
        self.publisher.publish_transcript(messages)
        return result

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> bool:
        """Open the microphone and a streaming session.

        Returns:
            True if a session was started; False if one was already live or
            the microphone could not be opened.
        """
        with self._lock:
            self._ensure_open()
            if self._state is ControllerState.RECORDING:
                logger.warning("Recording already in progress")
                return False

            session = RecordingSession(AudioChannel())
            try:
                self.audio_source.initialize()
                session.audio_subscription = self.audio_source.publisher.subscribe_frames(
                    self._make_frame_listener(session))
                session.status_subscription = self.audio_source.publisher.subscribe_status(
                    self._make_status_listener(session))
                self.audio_source.start()
            except DeviceError as e:
                session.cancel()
                logger.error(f"Cannot start recording: {e}")
                error = e
            except Exception:
                session.cancel()
                logger.exception("Unexpected error while starting recording")
                raise
            else:
                error = None
                session.result_thread = threading.Thread(
                    target=self._consume_results, args=(session,),
                    name=f"StreamingResultThread-{session.session_id}", daemon=True)
                self._session = session
                self._state = ControllerState.RECORDING

        if error is not None:
            self._report_status(f"Microphone unavailable: {error}")
            return False

        logger.info(f"Recording session {session.session_id} started")
        # Announce RECORDING before any result (or failure) can be handled
        self.publisher.publish_state(ControllerState.RECORDING)
        self._report_status("Listening...")
        session.result_thread.start()
        return True

    def stop_recording(self) -> bool:
        """Stop the microphone and close the streaming session.

        Returns:
            True if a live session was stopped, False if already idle.
        """
        with self._lock:
            if self._state is ControllerState.IDLE:
                logger.warning("No recording in progress")
                return False
            self._teardown_session()

        self.publisher.publish_state(ControllerState.IDLE)
        self._report_status("")
        return True

    def _make_frame_listener(self, session: RecordingSession):
        def on_frame(event: AudioEvent) -> None:
            self._forward_audio_event(session, event)
        return on_frame

    def _make_status_listener(self, session: RecordingSession):
        def on_status(status: AudioStatus) -> None:
            if status is AudioStatus.STOPPED:
                self._terminate(session, "Microphone stopped unexpectedly")
        return on_status

    def _forward_audio_event(self, session: RecordingSession, event: AudioEvent) -> None:
        try:
            if not session.channel.put(event.audio_data):
                logger.debug(f"Dropped {event.chunk_id}: channel closed")
        except Exception as e:
            # One bad chunk must not end the session
            logger.warning(f"Failed to forward audio chunk {event.chunk_id}: {e}")

    def _consume_results(self, session: RecordingSession) -> None:
        """Result thread body: apply streaming results in arrival order."""
        if session.cancelled.is_set():
            return

        error: Optional[Exception] = None
        results = None
        try:
            results = self.backend.streaming_detect_intent(self.streaming_config, session.channel)
            for result in results:
                if session.cancelled.is_set():
                    break
                self._handle_streaming_result(session, result)
        except BackendError as e:
            error = e
        except Exception as e:
            logger.exception(f"Unexpected error in streaming session {session.session_id}: {e}")
            error = e
        finally:
            close = getattr(results, "close", None)
            if close is not None:
                close()

        if session.cancelled.is_set():
            logger.debug(f"Result stream for session {session.session_id} finished after stop")
            return

        if error is None and session.exchanges_completed:
            # The service closes the call after answering an utterance
            logger.info(f"Streaming session {session.session_id} completed after "
                        f"{session.exchanges_completed} exchange(s)")
            self._terminate(session, "")
            return

        if error is None:
            error = StreamTerminated()
        logger.error(f"Streaming session {session.session_id} ended unexpectedly: {error}")
        self._terminate(session, f"Voice session ended: {error}")

    def _handle_streaming_result(self, session: RecordingSession, result: StreamingResult) -> None:
        transcript_changed = False
        preview_changed = False
        with self._lock:
            if session.cancelled.is_set() or session is not self._session:
                return
            session.results_received += 1

            if result.fulfillment_text:
                self.transcript.append_exchange(result.query_text, result.fulfillment_text)
                session.exchanges_completed += 1
                self._pending_input = ""
                transcript_changed = preview_changed = True

            if result.partial_transcript and not result.is_final:
                self._pending_input = result.partial_transcript
                preview_changed = True

            messages = self.transcript.messages
            preview = self._pending_input

        if transcript_changed:
            logger.info(f"Voice exchange added: '{result.query_text}'")
            self.publisher.publish_transcript(messages)
        if preview_changed:
            self.publisher.publish_preview(preview)

    def _terminate(self, session: RecordingSession, reason: str) -> None:
        """Force a live session back to idle once its stream has ended."""
        with self._lock:
            if session is not self._session:
                return
            self._teardown_session()
        self.publisher.publish_state(ControllerState.IDLE)
        self._report_status(reason)

    def _teardown_session(self) -> None:
        # Caller holds the lock
        session = self._session
        if session.status_subscription:
            session.status_subscription.cancel()
        try:
            self.audio_source.stop()
        except DeviceError as e:
            logger.warning(f"Error stopping audio source: {e}")
        session.cancel()
        self._session = None
        self._state = ControllerState.IDLE
        logger.info(f"Recording session {session.session_id} stopped: "
                    f"{session.channel.chunks_accepted} chunks sent, "
                    f"{session.results_received} results received")

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def set_pending_input(self, text: str) -> None:
        """Mirror typed, not yet submitted text."""
        with self._lock:
            self._pending_input = text
        self.publisher.publish_preview(text)

    def clear_transcript(self) -> None:
        with self._lock:
            self.transcript.clear()
            messages = self.transcript.messages
        logger.info("Transcript cleared")
        self.publisher.publish_transcript(messages)

    def _report_status(self, message: str) -> None:
        with self._lock:
            self.status_message = message
        self.publisher.publish_status(message)

    def close(self) -> None:
        """Release every open resource; safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            session = self._session
            if session is not None:
                self._teardown_session()

        self._executor.shutdown(wait=False, cancel_futures=True)
        if session is not None:
            thread = session.result_thread
            if thread and thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=self.join_timeout)
                if thread.is_alive():
                    logger.warning("Streaming result thread did not stop cleanly")
            self.publisher.publish_state(ControllerState.IDLE)
        logger.info("Session controller closed")

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *args) -> None:
        self.close()
