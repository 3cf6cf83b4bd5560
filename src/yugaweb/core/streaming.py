"""Chunk sink abstraction for live output during scans.

The CLI forwards tool output to stdout through a ``StreamSink``. The HTTP
endpoint does not need a sink: the WSGI server writes and flushes every
chunk the response iterable yields.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable

from yugaweb.core.logging import get_logger

LOGGER = get_logger(__name__)


class ChunkSink(ABC):
    """Destination for output chunks.

    ``write`` is always followed by ``flush`` so the receiving end sees
    output incrementally rather than only at completion.
    """

    @abstractmethod
    def write(self, chunk: bytes) -> None:
        """Accept one chunk."""

    @abstractmethod
    def flush(self) -> None:
        """Push everything written so far to the receiving end."""


class StreamSink(ChunkSink):
    """Thread-safe sink writing to a binary stream."""

    def __init__(self, output: BinaryIO):
        """Initialize StreamSink.

        Args:
            output: Binary stream to write to (e.g. ``sys.stdout.buffer``).
        """
        self._output = output
        self._lock = threading.Lock()

    def write(self, chunk: bytes) -> None:
        with self._lock:
            self._output.write(chunk)

    def flush(self) -> None:
        with self._lock:
            self._output.flush()


def forward_chunks(chunks: Iterable[bytes], sink: ChunkSink) -> int:
    """Forward chunks to a sink in order, flushing after each one.

    Holds at most one chunk at a time; nothing is accumulated.

    Args:
        chunks: Chunk producer, consumed until it is exhausted.
        sink: Destination for the chunks.

    Returns:
        Total number of bytes forwarded.
    """
    total = 0
    for chunk in chunks:
        sink.write(chunk)
        sink.flush()
        total += len(chunk)
    LOGGER.debug(f"Forwarded {total} bytes")
    return total
