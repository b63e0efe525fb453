"""
Unit tests for the delimited text reader (delimited_ingest.parsers.delimited).

Covers the reader state machine, the envelope format, row-level error
handling (column mismatch, empty identifier, URI failure), fatal header
resolution, progress reporting and resource release.
"""

from __future__ import annotations

import logging

import pytest

from delimited_ingest.config import ReaderConfig
from delimited_ingest.exceptions import ParsingError
from delimited_ingest.parsers.base import InvalidRecord, RowError, ValidRecord
from delimited_ingest.parsers.delimited import (
    DelimitedTextReader,
    ReaderState,
    build_envelope,
)
from delimited_ingest.payload import NamedPayload
from delimited_ingest.source import LineSource
from tests.conftest import PEOPLE_CSV, make_reader, make_source


class BrokenSource(LineSource):
    """Line source that raises OSError after delivering *lines*."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = list(lines)
        self.closed = False

    @property
    def total_length(self) -> int:
        return 100

    def next_line(self) -> str | None:
        if self._lines:
            return self._lines.pop(0)
        raise OSError("device not ready")

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

class TestBuildEnvelope:

    def test_root_wrapped_tags(self):
        assert (
            build_envelope(("id", "name"), ["1", "Alice"])
            == "<root><id>1</id><name>Alice</name></root>"
        )

    def test_values_are_not_escaped(self):
        """Markup characters pass through verbatim (known limitation)."""
        assert build_envelope(["a"], ["x<y&z"]) == "<root><a>x<y&z</a></root>"

    def test_empty_values_kept(self):
        assert build_envelope(["id", "note"], ["7", ""]) == "<root><id>7</id><note></note></root>"


# ---------------------------------------------------------------------------
# Valid rows
# ---------------------------------------------------------------------------

class TestValidRecords:

    def test_single_row(self):
        reader = make_reader("id,name\n1,Alice\n")
        record = reader.next_record()

        assert isinstance(record, ValidRecord)
        assert record.key == "1"
        assert record.payload == "<root><id>1</id><name>Alice</name></root>"
        assert record.line_number == 2
        assert reader.next_record() is None

    def test_first_column_is_default_identifier(self):
        reader = make_reader("id,name\n1,Alice\n")
        reader.next_record()
        assert reader.header.id_index == 0
        assert reader.header.id_name == "id"

    def test_configured_identifier_column(self):
        reader = make_reader("name,code\nAlice,A-1\n", id_column="code")
        record = reader.next_record()
        assert record.key == "A-1"
        assert record.payload == "<root><name>Alice</name><code>A-1</code></root>"

    def test_identifier_value_is_trimmed(self):
        reader = make_reader("id,name\n  42  ,Alice\n")
        record = reader.next_record()
        assert record.key == "42"
        # The envelope keeps the raw value
        assert "<id>  42  </id>" in record.payload

    def test_identifier_matched_on_trimmed_header_name(self):
        reader = make_reader("name, code \nAlice,A-1\n", id_column="code")
        assert reader.next_record().key == "A-1"

    def test_tab_delimiter(self):
        reader = make_reader("id\tname\n1\tAlice\n", delimiter="\t")
        record = reader.next_record()
        assert record.key == "1"
        assert record.payload == "<root><id>1</id><name>Alice</name></root>"

    def test_crlf_line_endings(self):
        reader = make_reader("id,name\r\n1,Alice\r\n")
        record = reader.next_record()
        assert record.payload == "<root><id>1</id><name>Alice</name></root>"

    def test_key_is_uri_encoded(self):
        reader = make_reader("id,name\nmy doc,Alice\n")
        assert reader.next_record().key == "my%20doc"

    def test_custom_uri_encoder(self):
        reader = DelimitedTextReader(
            make_source("id,name\n1,Alice\n"),
            uri_encoder=lambda value: f"/people/{value}.xml",
        )
        assert reader.next_record().key == "/people/1.xml"

    def test_payload_factory_named_payload(self):
        reader = DelimitedTextReader(
            make_source("id,name\n1,Alice\n"),
            payload_factory=lambda: NamedPayload("people.csv"),
        )
        record = reader.next_record()
        assert isinstance(record.document, NamedPayload)
        assert record.document.file_name == "people.csv"
        assert record.payload == "<root><id>1</id><name>Alice</name></root>"


# ---------------------------------------------------------------------------
# Blank lines and BOM
# ---------------------------------------------------------------------------

class TestBlankLinesAndBom:

    def test_leading_blank_lines_before_header(self):
        reader = make_reader("\n   \n\t\nid,name\n1,Alice\n")
        record = reader.next_record()
        assert record.key == "1"
        assert record.line_number == 5

    def test_blank_lines_between_rows(self):
        reader = make_reader("id,name\n\n\n1,Alice\n  \n2,Bob\n\n")
        keys = [r.key for r in reader]
        assert keys == ["1", "2"]

    def test_bom_stripped_before_identifier_match(self):
        reader = make_reader("\ufeffid,name\n1,Alice\n", id_column="id")
        record = reader.next_record()
        assert record.key == "1"
        assert reader.header.columns == ("id", "name")
        assert record.payload == "<root><id>1</id><name>Alice</name></root>"


# ---------------------------------------------------------------------------
# Row-level errors
# ---------------------------------------------------------------------------

class TestInvalidRecords:

    def test_too_few_fields(self):
        reader = make_reader("id,name,city\n3,Carol\n4,Dan,Ulsan\n")
        record = reader.next_record()

        assert isinstance(record, InvalidRecord)
        assert record.reason is RowError.COLUMN_MISMATCH
        assert record.line == "3,Carol"
        assert record.line_number == 2
        assert not record.is_valid
        # Parsing continues with the next line
        assert reader.next_record().key == "4"

    def test_too_many_fields(self):
        reader = make_reader("id,name\n1,Alice,extra\n")
        assert reader.next_record().reason is RowError.COLUMN_MISMATCH

    def test_empty_identifier(self):
        reader = make_reader("id,name\n,Bob\n2,Carol\n")
        record = reader.next_record()

        assert isinstance(record, InvalidRecord)
        assert record.reason is RowError.EMPTY_ID
        assert reader.next_record().key == "2"

    def test_whitespace_identifier(self):
        reader = make_reader("name,id\nBob,   \n", id_column="id")
        assert reader.next_record().reason is RowError.EMPTY_ID

    def test_uri_encoding_failure(self):
        reader = make_reader("id,name\nurn:x,Alice\n2,Bob\n")
        record = reader.next_record()

        assert isinstance(record, InvalidRecord)
        assert record.reason is RowError.URI_ENCODING_FAILED
        assert reader.next_record().key == "2"

    def test_encoder_returning_none(self):
        reader = DelimitedTextReader(
            make_source("id,name\n1,Alice\n"), uri_encoder=lambda value: None
        )
        assert reader.next_record().reason is RowError.URI_ENCODING_FAILED

    def test_row_errors_are_logged(self, caplog):
        reader = make_reader("id,name\n3\n,Bob\n")
        with caplog.at_level(logging.ERROR, logger="delimited_ingest"):
            list(reader)
        messages = " ".join(r.getMessage() for r in caplog.records)
        assert "inconsistent with column definition" in messages
        assert "column used for uri_id is empty" in messages

    def test_people_sample(self):
        records = list(make_reader(PEOPLE_CSV))

        # One result per non-blank line after the header
        assert len(records) == 5
        assert [r.line_number for r in records] == [2, 3, 5, 6, 7]
        assert [r.is_valid for r in records] == [True, True, False, False, True]
        assert records[2].reason is RowError.COLUMN_MISMATCH
        assert records[3].reason is RowError.EMPTY_ID
        assert [r.key for r in records if r.is_valid] == ["1", "2", "5"]


# ---------------------------------------------------------------------------
# Header failure and state machine
# ---------------------------------------------------------------------------

class TestStateMachine:

    def test_initial_state(self):
        reader = make_reader("id,name\n1,Alice\n")
        assert reader.state is ReaderState.UNINITIALIZED
        assert reader.header is None

    def test_ready_after_first_record(self):
        reader = make_reader("id,name\n1,Alice\n2,Bob\n")
        reader.next_record()
        assert reader.state is ReaderState.READY

    def test_exhausted_at_end(self):
        reader = make_reader("id,name\n1,Alice\n")
        list(reader)
        assert reader.state is ReaderState.EXHAUSTED
        assert reader.next_record() is None

    def test_missing_identifier_column_is_fatal(self):
        reader = make_reader("name,city\nAlice,Seoul\n", id_column="id")
        with pytest.raises(ParsingError, match="'id' is not found"):
            reader.next_record()
        assert reader.state is ReaderState.FAILED

    def test_failed_reader_keeps_raising(self):
        reader = make_reader("name,city\nAlice,Seoul\n", id_column="id")
        with pytest.raises(ParsingError):
            reader.next_record()
        with pytest.raises(ParsingError):
            reader.next_record()

    def test_failure_emits_no_records(self):
        reader = make_reader("name\n1\n2\n", id_column="id")
        emitted = []
        with pytest.raises(ParsingError):
            for record in reader:
                emitted.append(record)
        assert emitted == []

    def test_read_error_during_header_fails_reader(self):
        source = BrokenSource([])
        reader = DelimitedTextReader(source)
        with pytest.raises(OSError, match="device not ready"):
            reader.next_record()

        assert reader.state is ReaderState.FAILED
        assert source.closed
        # A later call reports the failure instead of tripping over a missing header
        with pytest.raises(ParsingError, match="device not ready"):
            reader.next_record()

    def test_read_error_on_data_row_fails_reader(self):
        source = BrokenSource(["id,name\n", "1,Alice\n"])
        reader = DelimitedTextReader(source)
        assert reader.next_record().key == "1"

        with pytest.raises(OSError):
            reader.next_record()
        assert reader.state is ReaderState.FAILED
        assert source.closed
        with pytest.raises(ParsingError):
            reader.next_record()

    def test_empty_stream(self):
        reader = make_reader("")
        assert reader.next_record() is None
        assert reader.state is ReaderState.EXHAUSTED
        assert reader.header is None

    def test_blank_only_stream(self):
        reader = make_reader("\n  \n\n")
        assert reader.next_record() is None
        assert reader.progress == 1.0

    def test_header_only_stream(self):
        reader = make_reader("id,name\n\n")
        assert reader.next_record() is None
        assert reader.header.columns == ("id", "name")


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class TestProgress:

    def test_starts_at_zero(self):
        assert make_reader("id,name\n1,Alice\n").progress == 0.0

    def test_fractional_progress_mid_stream(self):
        reader = make_reader("id,name\n1,Alice\n2,Bob\n3,Carol\n")
        reader.next_record()
        assert 0.0 < reader.progress < 1.0

    def test_monotonic_and_complete(self):
        reader = make_reader(PEOPLE_CSV)
        seen = [reader.progress]
        while reader.next_record() is not None:
            seen.append(reader.progress)
        seen.append(reader.progress)

        assert seen == sorted(seen)
        assert seen[-1] == 1.0

    def test_counts_skipped_blank_lines(self):
        text = "id,name\n\n\n\n1,Alice\n"
        reader = make_reader(text)
        reader.next_record()
        assert reader.bytes_read == len(text.encode("utf-8"))

    def test_counts_utf8_bytes(self):
        text = "id,name\n1,서울\n2,부산\n"
        reader = make_reader(text)
        reader.next_record()
        assert reader.bytes_read == len("id,name\n1,서울\n".encode("utf-8"))


# ---------------------------------------------------------------------------
# Resource release
# ---------------------------------------------------------------------------

class TestClose:

    def test_closed_at_end_of_stream(self):
        source = make_source("id,name\n1,Alice\n")
        reader = DelimitedTextReader(source)
        list(reader)
        assert source.next_line() is None

    def test_close_is_idempotent(self):
        reader = make_reader("id,name\n1,Alice\n")
        reader.close()
        reader.close()
        assert reader.next_record() is None

    def test_close_after_failed_init(self):
        reader = make_reader("name\nAlice\n", id_column="id")
        with pytest.raises(ParsingError):
            reader.next_record()
        reader.close()

    def test_context_manager_closes(self):
        source = make_source("id,name\n1,Alice\n2,Bob\n")
        with DelimitedTextReader(source, config=ReaderConfig()) as reader:
            reader.next_record()
        assert source.next_line() is None
        assert reader.next_record() is None
