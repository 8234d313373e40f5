"""Microphone capture source backed by PyAudio."""

import pyaudio
import time
import logging
import threading
from threading import Thread, Event
from typing import Optional
import numpy as np

from ..exceptions import DeviceError
from ..models.events import AudioEvent, AudioStatus
from .audio_pub import AudioPublisher
from .base import AbstractAudioSource


logger = logging.getLogger(__name__)


class AudioCapture(AbstractAudioSource):
    """Continuous microphone capture publishing LINEAR16 chunks."""

    def __init__(
        self,
        publisher: AudioPublisher,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            publisher: Publisher that receives chunks and status changes
            sample_rate: Audio sample rate (16kHz for Dialogflow LINEAR16)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        super().__init__(publisher)
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Statistics tracking
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._stream = None

    def initialize(self) -> None:
        """Open PyAudio and make sure an input device exists."""
        if self.pyaudio_instance is not None:
            return
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            device = self.pyaudio_instance.get_default_input_device_info()
        except (OSError, IOError) as e:
            self.cleanup()
            raise DeviceError(f"No usable microphone: {e}", cause=e) from e
        logger.info(f"Using input device: {device.get('name', 'unknown')}")
        self._set_status(AudioStatus.IDLE)

    def start(self) -> None:
        """Open the input stream and start recording in a background thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        self.initialize()
        self._stream = self.__open_audio_stream()

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.total_chunks = 0
        self.peak_level = 0.0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self._set_status(AudioStatus.RECORDING)
        self.recording_thread.start()

    def stop(self) -> None:
        """Stop recording and close the input stream."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        thread = self.recording_thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        self._set_status(AudioStatus.STOPPED)
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def __open_audio_stream(self):
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (OSError, IOError) as e:
            raise DeviceError(f"Failed to open microphone stream: {e}", cause=e) from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream) -> bytes:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            self.peak_level = float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0
        return audio_chunk

    def __publish_audio_event(self, audio_chunk: bytes) -> None:
        audio_event = AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )
        self.publisher.publish_audio_event(audio_event)

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = self._stream
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk(stream)
                self.__publish_audio_event(audio_chunk)
        except (OSError, IOError) as e:
            # Device went away mid-recording; report it as stopped
            logger.error(f"Audio device error while recording: {e}")
            self.is_recording = False
            self._set_status(AudioStatus.STOPPED)
        finally:
            stream.stop_stream()
            stream.close()
            self._stream = None

    def cleanup(self) -> None:
        """Release the PyAudio instance."""
        if self.is_recording:
            self.stop()
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
