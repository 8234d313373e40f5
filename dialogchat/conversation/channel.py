"""Closable outbound audio channel feeding a streaming request."""

import queue
import logging
import threading

logger = logging.getLogger(__name__)


class AudioChannel:
    """Thread-safe buffered channel of audio chunks.

    Producers ``put`` chunks from the capture thread; the streaming call
    consumes the channel as an iterator, which ends once ``close`` is called
    and everything queued before it has been drained.
    """

    _END = object()

    def __init__(self):
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self.chunks_accepted = 0
        self.chunks_rejected = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, chunk: bytes) -> bool:
        """Queue a chunk. Returns False if the channel is already closed."""
        with self._lock:
            if self._closed:
                self.chunks_rejected += 1
                return False
            self._queue.put(chunk)
            self.chunks_accepted += 1
            return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(self._END)
        logger.debug(f"Audio channel closed after {self.chunks_accepted} chunks")

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is self._END:
                return
            yield item
