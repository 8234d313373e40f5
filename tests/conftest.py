"""Pytest configuration and fixtures for DialogChat tests."""

import pytest
import queue
import tempfile
import threading
import time
import uuid
import logging
from typing import Dict, Iterable, Iterator, List, Optional
from unittest.mock import Mock, patch

import numpy as np
from pubsub import pub

from dialogchat.audio.audio_pub import AudioPublisher
from dialogchat.audio.base import AbstractAudioSource
from dialogchat.conversation import ConversationPublisher, SessionController
from dialogchat.exceptions import DeviceError
from dialogchat.intent.base import AbstractIntentBackend
from dialogchat.models.events import AudioEvent, AudioStatus
from dialogchat.models.intent import IntentResult, StreamingConfig, StreamingResult


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: multi-component tests")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll until predicate() is truthy or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every pubsub listener after each test."""
    yield
    pub.unsubAll()


@pytest.fixture
def topic_prefix():
    """Unique topic root so tests never see each other's messages."""
    return f"t{uuid.uuid4().hex[:10]}"


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers at half scale
    audio_data = (wave_data * 16384).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def slow_read(*args, **kwargs):
            time.sleep(0.005)
            return b'\x00' * 2048  # Silent audio

        mock_stream.read.side_effect = slow_read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {"name": "Mock Mic"}

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class FakeAudioSource(AbstractAudioSource):
    """Audio source whose chunks are pushed by the test."""

    def __init__(self, publisher: AudioPublisher):
        super().__init__(publisher)
        self.initialize_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_initialize: Optional[Exception] = None
        self.fail_start: Optional[Exception] = None
        self.emitted = 0

    def initialize(self) -> None:
        self.initialize_calls += 1
        if self.fail_initialize is not None:
            raise self.fail_initialize

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_start is not None:
            raise self.fail_start
        self._set_status(AudioStatus.RECORDING)

    def stop(self) -> None:
        self.stop_calls += 1
        self._set_status(AudioStatus.STOPPED)

    def emit(self, data: bytes) -> None:
        self.emitted += 1
        self.publisher.publish_audio_event(AudioEvent(
            chunk_id=f"chunk_{self.emitted}",
            audio_data=data,
            timestamp=time.time(),
            sequence_number=self.emitted,
        ))

    def lose_device(self) -> None:
        """Simulate the microphone disappearing mid-recording."""
        self._set_status(AudioStatus.STOPPED)


class FakeStreamCall:
    """One streaming_detect_intent call driven by the test."""

    _END = object()

    def __init__(self, config: StreamingConfig, audio_chunks: Iterable[bytes]):
        self.config = config
        self.received_chunks: List[bytes] = []
        self.outbound_closed = threading.Event()
        self._results: "queue.Queue[object]" = queue.Queue()
        self._drain_thread = threading.Thread(target=self._drain, args=(audio_chunks,), daemon=True)
        self._drain_thread.start()

    def _drain(self, audio_chunks: Iterable[bytes]) -> None:
        for chunk in audio_chunks:
            self.received_chunks.append(chunk)
        self.outbound_closed.set()
        # Like the real service: the response stream ends after end-of-input
        self._results.put(self._END)

    def push(self, result: StreamingResult) -> None:
        self._results.put(result)

    def fail(self, error: Exception) -> None:
        self._results.put(error)

    def end(self) -> None:
        self._results.put(self._END)

    def results(self) -> Iterator[StreamingResult]:
        while True:
            item = self._results.get()
            if item is self._END:
                return
            if isinstance(item, Exception):
                raise item
            yield item


class FakeIntentBackend(AbstractIntentBackend):
    """Backend stub: canned text replies and test-driven streaming calls."""

    def __init__(self):
        self.replies: Dict[str, str] = {}
        self.delays: Dict[str, float] = {}
        self.error: Optional[Exception] = None
        self.stream_error: Optional[Exception] = None
        self.text_requests: List[tuple] = []
        self.stream_calls: List[FakeStreamCall] = []

    def initialize(self) -> bool:
        return True

    def detect_intent(self, text: str, language_code: str) -> IntentResult:
        self.text_requests.append((text, language_code))
        time.sleep(self.delays.get(text, 0))
        if self.error is not None:
            raise self.error
        return IntentResult(query_text=text, fulfillment_text=self.replies.get(text, ""))

    def streaming_detect_intent(self, config, audio_chunks):
        if self.stream_error is not None:
            raise self.stream_error
        call = FakeStreamCall(config, audio_chunks)
        self.stream_calls.append(call)
        yield from call.results()

    @property
    def last_call(self) -> FakeStreamCall:
        assert wait_for(lambda: self.stream_calls), "streaming call was never opened"
        return self.stream_calls[-1]

    def cleanup(self) -> None:
        pass


@pytest.fixture
def fake_backend():
    return FakeIntentBackend()


@pytest.fixture
def fake_audio_source(topic_prefix):
    return FakeAudioSource(AudioPublisher(f"{topic_prefix}_audio"))


@pytest.fixture
def conversation_publisher(topic_prefix):
    return ConversationPublisher(f"{topic_prefix}_chat")


@pytest.fixture
def controller(fake_backend, fake_audio_source, conversation_publisher):
    controller = SessionController(
        backend=fake_backend,
        audio_source=fake_audio_source,
        streaming_config=StreamingConfig(),
        publisher=conversation_publisher,
    )
    yield controller
    controller.close()


@pytest.fixture
def device_error():
    return DeviceError("Permission denied")
