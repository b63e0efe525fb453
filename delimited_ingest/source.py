"""
Line sources for delimited-ingest.

A line source hands decoded text lines to the reader and knows the
total byte length of what it will deliver.  The reader never opens
files or decodes bytes itself; it only pulls lines from a source.

- ``LineSource``: the ABC the reader depends on.
- ``TextStreamSource``: wraps any text-mode stream (file, ``io.StringIO``).
- ``open_source()``: opens a file on disk and takes its size from the
  file system.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TextIO

logger = logging.getLogger(__name__)


class LineSource(ABC):
    """Sequential, byte-length-bounded source of decoded text lines."""

    @property
    @abstractmethod
    def total_length(self) -> int:
        """Total byte length of the underlying input."""

    @property
    def name(self) -> str:
        """Human-readable name of the input, used in logs and manifests."""
        return ""

    @abstractmethod
    def next_line(self) -> str | None:
        """Return the next line (terminator included) or ``None`` at end."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource.  Must be idempotent."""


class TextStreamSource(LineSource):
    """Line source over an already-open text stream.

    Args:
        stream: Text-mode stream; ownership passes to the source.
        total_length: Byte length of the input behind *stream*.
        name: Optional display name (e.g. the file path).
    """

    def __init__(self, stream: TextIO, total_length: int, name: str = "") -> None:
        self._stream: TextIO | None = stream
        self._total_length = total_length
        self._name = name

    @property
    def total_length(self) -> int:
        return self._total_length

    @property
    def name(self) -> str:
        return self._name

    def next_line(self) -> str | None:
        if self._stream is None:
            return None
        line = self._stream.readline()
        if line == "":
            return None
        return line

    def close(self) -> None:
        if self._stream is not None:
            stream, self._stream = self._stream, None
            stream.close()


def open_source(path: str | Path, encoding: str | None = None) -> TextStreamSource:
    """Open a delimited text file as a line source.

    Args:
        path: File to read.
        encoding: Character encoding; ``None`` uses the platform default.

    Returns:
        A ``TextStreamSource`` whose total length is the file size in bytes.

    Raises:
        OSError: If the file cannot be opened.  Not retried.
    """
    path = Path(path)
    total_length = path.stat().st_size
    # newline="" keeps "\r\n" intact so byte counting matches the file.
    stream = open(path, "r", encoding=encoding, newline="")
    logger.info(
        "Opened %s (%d bytes, encoding=%s)",
        path, total_length, encoding or "platform default",
    )
    return TextStreamSource(stream, total_length, name=str(path))
