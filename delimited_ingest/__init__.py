"""
delimited-ingest: streaming reader turning delimited text into documents.

Each non-blank data line of a CSV/TSV-like file becomes one record: a
URI key derived from the identifier column plus a root-wrapped,
per-column-tagged envelope.  Malformed rows are reported as invalid
records and never stop the stream.

Public API surface:

- ``open_reader(path, ...)`` -- open a file and return a
  ``DelimitedTextReader`` (pull with ``next_record()`` or iterate).

- ``read_records(path, ...)`` -- generator over every record result;
  closes the file when done.

- ``init(...)`` -- First-run workflow.  Writes a default
  ``ingest.yaml`` and optionally runs the ingest.

- ``ingest(...)`` -- Subsequent-run workflow.  Loads ``ingest.yaml``,
  reads every record and exports the run manifest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from delimited_ingest._pipeline import IngestResult, run_ingest_and_export
from delimited_ingest.config import (
    DEFAULT_DELIMITER,
    IngestConfig,
    ReaderConfig,
    UriConfig,
    generate_default_config,
    load_config,
    save_config,
)
from delimited_ingest.parsers.base import InvalidRecord, Record, RowError, ValidRecord
from delimited_ingest.parsers.delimited import DelimitedTextReader, ReaderState
from delimited_ingest.payload import NamedPayload, TextPayload
from delimited_ingest.source import open_source
from delimited_ingest.uri import UriBuilder

__all__ = [
    "open_reader",
    "read_records",
    "init",
    "ingest",
    "DelimitedTextReader",
    "ReaderState",
    "ValidRecord",
    "InvalidRecord",
    "RowError",
    "IngestResult",
]

logger = logging.getLogger(__name__)


def open_reader(
    path: str | Path,
    delimiter: str = DEFAULT_DELIMITER,
    id_column: str | None = None,
    encoding: str | None = None,
    uri: UriConfig | None = None,
    file_name_payload: bool = False,
) -> DelimitedTextReader:
    """Open a delimited text file and return a reader over it.

    Args:
        path: File to read.
        delimiter: Single-character field separator.
        id_column: Identifier column name; ``None`` uses the first column.
        encoding: Source encoding; ``None`` uses the platform default.
        uri: Optional URI replace/prefix/suffix rules.
        file_name_payload: If True, each record's document is a
            ``NamedPayload`` carrying the file name.

    Returns:
        A ``DelimitedTextReader`` that owns the open file.

    Raises:
        pydantic.ValidationError: If *delimiter* is not one character.
        OSError: If the file cannot be opened.
    """
    config = ReaderConfig(delimiter=delimiter, id_column=id_column, encoding=encoding)
    source = open_source(path, encoding=config.encoding)
    if file_name_payload:
        file_name = Path(path).name
        payload_factory = lambda: NamedPayload(file_name)  # noqa: E731
    else:
        payload_factory = TextPayload
    return DelimitedTextReader(
        source,
        config=config,
        uri_encoder=UriBuilder(uri),
        payload_factory=payload_factory,
    )


def read_records(path: str | Path, **kwargs) -> Iterator[Record]:
    """Yield every record result of *path*, closing the file afterwards.

    Keyword arguments are passed to ``open_reader()``.

    Raises:
        ParsingError: If the identifier column is not in the header.
    """
    with open_reader(path, **kwargs) as reader:
        yield from reader


def init(
    input_path: str,
    output_dir: str = "outputs/",
    config_path: str = "ingest.yaml",
    delimiter: str = DEFAULT_DELIMITER,
    id_column: str | None = None,
    encoding: str | None = None,
    run_immediately: bool = True,
) -> IngestResult:
    """First-run entry point: generate ingest.yaml, optionally ingest.

    Args:
        input_path: Path to the delimited text file.
        output_dir: Directory where the manifest will be written.
        config_path: Where to write the generated ingest.yaml.
        delimiter: Single-character field separator.
        id_column: Identifier column name; ``None`` uses the first column.
        encoding: Source encoding; ``None`` uses the platform default.
        run_immediately: If True, also run the ingest after writing
            the config.  If False, only the config is written.

    Returns:
        An ``IngestResult`` (empty when *run_immediately* is False).

    Raises:
        pydantic.ValidationError: If *delimiter* is not one character.
        ParsingError: If the identifier column is not in the header.
    """
    logger.info("init() -- input_path=%s, output_dir=%s", input_path, output_dir)

    config = generate_default_config(
        input_path=input_path,
        output_dir=output_dir,
        delimiter=delimiter,
        id_column=id_column,
        encoding=encoding,
    )
    save_config(config, config_path)

    if not run_immediately:
        return IngestResult()
    logger.info("run_immediately=True -- running ingest")
    return run_ingest_and_export(config)


def ingest(config_path: str = "ingest.yaml") -> IngestResult:
    """Subsequent-run entry point: load ingest.yaml and run the ingest.

    Raises:
        FileNotFoundError: If *config_path* does not exist.
        pydantic.ValidationError: If config fails Pydantic validation.
        ConfigValidationError: If the config file is empty.
        ParsingError: If the identifier column is not in the header.
        ExportError: If the manifest cannot be written.
    """
    logger.info("ingest() -- config_path=%s", config_path)
    config: IngestConfig = load_config(config_path)
    logger.info(
        "Loaded config: delimiter=%r, id_column=%s",
        config.reader.delimiter, config.reader.id_column or "<first column>",
    )
    return run_ingest_and_export(config)
