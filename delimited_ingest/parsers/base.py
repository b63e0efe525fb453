"""
Base reader protocol / ABC and record result types for delimited-ingest.

Every call to ``BaseRecordReader.next_record()`` returns exactly one of:

- ``ValidRecord``: a derived URI key plus the serialized payload.
- ``InvalidRecord``: the row could not produce a usable document; the
  reason says why.  Iteration continues past it.
- ``None``: the stream is exhausted.

Keeping the two variants as separate types means callers never have to
infer validity from a missing key.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Union

from delimited_ingest.payload import Payload


class RowError(str, enum.Enum):
    """Why a data row was reported as invalid."""

    COLUMN_MISMATCH = "column_mismatch"
    EMPTY_ID = "empty_id"
    URI_ENCODING_FAILED = "uri_encoding_failed"


@dataclass(frozen=True)
class ValidRecord:
    """A row that produced a document.

    Attributes:
        key: URI derived from the identifier column.
        document: Output slot holding the envelope text.
        line_number: 1-based physical line number in the source.
    """
    key: str
    document: Payload
    line_number: int

    @property
    def payload(self) -> str:
        """Root-wrapped, per-column-tagged envelope text."""
        return self.document.text

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class InvalidRecord:
    """A row that was processed but produced no document.

    Attributes:
        reason: The ``RowError`` category.
        line: The raw line as read (terminator removed).
        line_number: 1-based physical line number in the source.
        message: Human-readable diagnostic, same text as the log entry.
    """
    reason: RowError
    line: str
    line_number: int
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return False


Record = Union[ValidRecord, InvalidRecord]


class BaseRecordReader(ABC):
    """Abstract pull-based record reader owning one line source.

    Subclasses implement ``next_record()``, ``progress`` and ``close()``.
    Iteration and context-manager support are provided here.
    """

    @abstractmethod
    def next_record(self) -> Record | None:
        """Return the next record result, or ``None`` when exhausted.

        Raises:
            ParsingError: If the stream cannot be parsed at all.
        """

    @property
    @abstractmethod
    def progress(self) -> float:
        """Fraction of the input consumed, in ``[0.0, 1.0]``."""

    @abstractmethod
    def close(self) -> None:
        """Release the source.  Idempotent."""

    def __iter__(self) -> Iterator[Record]:
        while True:
            record = self.next_record()
            if record is None:
                return
            yield record

    def __enter__(self) -> BaseRecordReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
