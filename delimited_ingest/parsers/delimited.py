"""
Delimited text reader for delimited-ingest.

Converts a CSV/TSV-like line stream into one record result per
non-blank data line.  Splitting is plain single-character splitting;
quoted fields and embedded delimiters are not interpreted.

Lifecycle (``ReaderState``)::

    UNINITIALIZED -> HEADER_PENDING -> READY -> EXHAUSTED
                          |             |
                          +-------------+-> FAILED

The header is resolved lazily on the first ``next_record()`` call.  Two
conditions are fatal for the instance: a header without the configured
identifier column, and any error raised while reading the source.  Every
row-level problem yields an ``InvalidRecord`` and the next call moves on
to the next line.

Envelope format, for header ``id,name`` and line ``1,Alice``::

    <root><id>1</id><name>Alice</name></root>

Values are written verbatim (no markup escaping), so values containing
``<`` or ``&`` produce ill-formed markup.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

from delimited_ingest.config import ReaderConfig
from delimited_ingest.cursor import LineCursor
from delimited_ingest.exceptions import ParsingError
from delimited_ingest.parsers.base import (
    BaseRecordReader,
    InvalidRecord,
    Record,
    RowError,
    ValidRecord,
)
from delimited_ingest.parsers.header import Header, resolve_header
from delimited_ingest.payload import Payload, TextPayload
from delimited_ingest.source import LineSource
from delimited_ingest.uri import UriEncoder, encode_uri

logger = logging.getLogger(__name__)

ROOT_START = "<root>"
ROOT_END = "</root>"


class ReaderState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    HEADER_PENDING = "header_pending"
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


def build_envelope(columns: tuple[str, ...] | list[str], values: list[str]) -> str:
    """Serialize one row as ``<root><col>value</col>...</root>``."""
    parts = [ROOT_START]
    for name, value in zip(columns, values):
        parts.append(f"<{name}>{value}</{name}>")
    parts.append(ROOT_END)
    return "".join(parts)


class DelimitedTextReader(BaseRecordReader):
    """Pull-based reader turning delimited lines into records.

    Args:
        source: Line source; the reader owns it and closes it.
        config: Delimiter, identifier column and encoding options.
        uri_encoder: Maps a trimmed identifier value to a URI, or
            ``None`` when the value cannot be encoded.
        payload_factory: Builds the output slot each envelope is
            written into.  Defaults to ``TextPayload``.

    Example::

        with DelimitedTextReader(open_source("people.csv")) as reader:
            for record in reader:
                if record.is_valid:
                    store(record.key, record.payload)
    """

    def __init__(
        self,
        source: LineSource,
        config: ReaderConfig | None = None,
        uri_encoder: UriEncoder = encode_uri,
        payload_factory: Callable[[], Payload] = TextPayload,
    ) -> None:
        self.config = config or ReaderConfig()
        self._cursor = LineCursor(source)
        self._uri_encoder = uri_encoder
        self._payload_factory = payload_factory
        self._header: Header | None = None
        self._failure: Exception | None = None
        self._closed = False
        self.state = ReaderState.UNINITIALIZED

    # -- Properties ---------------------------------------------------------

    @property
    def header(self) -> Header | None:
        """The resolved header, or ``None`` before resolution."""
        return self._header

    @property
    def progress(self) -> float:
        return self._cursor.progress()

    @property
    def bytes_read(self) -> int:
        return self._cursor.bytes_read

    @property
    def source_name(self) -> str:
        return self._cursor.source.name

    def __repr__(self) -> str:
        return (
            f"DelimitedTextReader(source={self.source_name!r}, "
            f"state={self.state.value}, progress={self.progress:.2f})"
        )

    # -- Record iteration ---------------------------------------------------

    def next_record(self) -> Record | None:
        """Return the next record result, or ``None`` once exhausted.

        Raises:
            ParsingError: If the header lacks the configured identifier
                column, or on any call after the reader has failed.
            OSError: If the source cannot be read.  The reader is closed
                and every later call raises ``ParsingError``.
        """
        if self.state is ReaderState.FAILED:
            raise ParsingError(
                f"Reader for {self.source_name or 'stream'} failed: {self._failure}"
            ) from self._failure
        if self.state is ReaderState.EXHAUSTED or self._closed:
            return None

        try:
            if self.state is ReaderState.UNINITIALIZED:
                self.state = ReaderState.HEADER_PENDING
                if not self._resolve_header():
                    return None

            line = self._cursor.next_non_blank()
            if line is None:
                self._finish()
                return None
            return self._parse_line(line, self._cursor.line_number)
        except Exception as exc:
            self._fail(exc)
            raise

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cursor.source.close()

    # -- Private helpers ----------------------------------------------------

    def _resolve_header(self) -> bool:
        """Consume the header line.  Returns False if the stream is empty."""
        line = self._cursor.next_non_blank()
        if line is None:
            logger.info("No header line found in %s", self.source_name or "stream")
            self._finish()
            return False
        self._header = resolve_header(
            line,
            self.config.delimiter,
            self.config.id_column,
            encoding=self.config.encoding,
        )
        self.state = ReaderState.READY
        return True

    def _finish(self) -> None:
        self.state = ReaderState.EXHAUSTED
        self.close()

    def _fail(self, exc: Exception) -> None:
        logger.error(
            "Reader for %s failed in state %s: %s",
            self.source_name or "stream", self.state.value, exc,
        )
        self.state = ReaderState.FAILED
        self._failure = exc
        self.close()

    def _parse_line(self, line: str, line_number: int) -> Record:
        header = self._header
        values = line.split(self.config.delimiter)
        if len(values) != len(header):
            message = (
                f"{line} is inconsistent with column definition "
                f"({len(values)} fields, expected {len(header)})"
            )
            logger.error("Line %d: %s", line_number, message)
            return InvalidRecord(RowError.COLUMN_MISMATCH, line, line_number, message)

        id_value = values[header.id_index].strip()
        if not id_value:
            message = f"{line}: column used for uri_id is empty"
            logger.error("Line %d: %s", line_number, message)
            return InvalidRecord(RowError.EMPTY_ID, line, line_number, message)

        key = self._uri_encoder(id_value)
        if not key:
            message = f"{line}: cannot derive a URI from {id_value!r}"
            logger.error("Line %d: %s", line_number, message)
            return InvalidRecord(
                RowError.URI_ENCODING_FAILED, line, line_number, message
            )

        payload = self._payload_factory()
        payload.set_text(build_envelope(header.columns, values))
        return ValidRecord(key=key, document=payload, line_number=line_number)
