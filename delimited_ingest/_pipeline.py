"""
Internal pipeline orchestration for delimited-ingest.

Shared by the module-level ``init()`` and ``ingest()`` functions:
open the source, drive the reader to exhaustion, build the manifest
and export it.

This module is **not** part of the public API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from delimited_ingest.config import IngestConfig
from delimited_ingest.export import export_manifest
from delimited_ingest.manifest import build_manifest
from delimited_ingest.parsers.base import Record
from delimited_ingest.parsers.delimited import DelimitedTextReader
from delimited_ingest.payload import NamedPayload
from delimited_ingest.source import open_source
from delimited_ingest.uri import UriBuilder

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of one ingest run.

    Attributes:
        written: Paths of the files written (the manifest).
        total: Number of emitted items (valid + invalid).
        valid: Number of rows that produced a document.
        invalid: Number of rows reported as invalid.
    """

    written: list[str] = field(default_factory=list)
    total: int = 0
    valid: int = 0
    invalid: int = 0


def build_reader(config: IngestConfig) -> DelimitedTextReader:
    """Open the configured source and wrap it in a reader."""
    input_path = config.source.input_path
    source = open_source(input_path, encoding=config.reader.encoding)
    file_name = Path(input_path).name
    return DelimitedTextReader(
        source,
        config=config.reader,
        uri_encoder=UriBuilder(config.uri),
        payload_factory=lambda: NamedPayload(file_name),
    )


def _counted(records: Iterable[Record], result: IngestResult) -> Iterator[Record]:
    """Pass records through, tallying them into *result*."""
    for record in records:
        result.total += 1
        if record.is_valid:
            result.valid += 1
        else:
            result.invalid += 1
        yield record


def run_ingest_and_export(config: IngestConfig) -> IngestResult:
    """Read every record of the configured source and export the manifest.

    Raises:
        ParsingError: If the identifier column is not in the header.
        OSError: If the source cannot be opened or read.
        ExportError: If the manifest cannot be written.
    """
    result = IngestResult()
    with build_reader(config) as reader:
        manifest_df = build_manifest(
            _counted(reader, result),
            config.source.input_path,
            include_invalid=config.output.include_invalid,
            include_payload=config.output.include_payload,
        )
        logger.debug("Reader finished at progress %.3f", reader.progress)

    result.written.append(
        export_manifest(
            manifest_df,
            output_dir=config.output.output_dir,
            output_format=config.output.output_format,
        )
    )

    logger.info(
        "Ingest complete: %d records (%d valid, %d invalid)",
        result.total, result.valid, result.invalid,
    )
    return result
