"""
Line cursor with byte-based progress for delimited-ingest.

The cursor is the only writer of the byte counter.  Every line pulled
from the source -- blank or not -- advances ``bytes_read`` by the UTF-8
length of the line as delivered (terminator included), so progress
tracks the real stream position through skipped input.
"""

from __future__ import annotations

import logging

from delimited_ingest.source import LineSource

logger = logging.getLogger(__name__)


def is_blank(line: str) -> bool:
    """True for empty or whitespace-only lines."""
    return line.strip() == ""


class LineCursor:
    """Pulls lines from a ``LineSource`` and tracks consumed bytes.

    Attributes:
        bytes_read: Cumulative UTF-8 bytes of all lines returned so far.
        line_number: 1-based number of the last line returned (0 before
            the first read).
        exhausted: True once the source reported end of stream.
    """

    def __init__(self, source: LineSource) -> None:
        self.source = source
        self.bytes_read = 0
        self.line_number = 0
        self.exhausted = False

    def next_line(self) -> str | None:
        """Return the next line without its terminator, or ``None`` at end."""
        if self.exhausted:
            return None
        raw = self.source.next_line()
        if raw is None:
            self.exhausted = True
            self.bytes_read = max(self.bytes_read, self.source.total_length)
            return None
        self.bytes_read += len(raw.encode("utf-8", errors="surrogatepass"))
        self.line_number += 1
        return raw.rstrip("\r\n")

    def next_non_blank(self) -> str | None:
        """Skip blank lines and return the next non-blank one, or ``None``."""
        line = self.next_line()
        while line is not None and is_blank(line):
            line = self.next_line()
        return line

    def progress(self) -> float:
        """Fraction of the stream consumed, clamped to ``[0.0, 1.0]``."""
        total = self.source.total_length
        if self.exhausted or total <= 0:
            return 1.0
        return min(max(self.bytes_read / total, 0.0), 1.0)
