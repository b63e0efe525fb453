"""
Configuration models and YAML I/O for delimited-ingest.

This module defines the Pydantic models that map 1:1 to ingest.yaml,
plus helper functions for loading, saving, and auto-generating the config.

Key models:
- IngestConfig: Top-level config (source + reader + uri + output).
- SourceConfig: Input file path.
- ReaderConfig: Delimiter, identifier column name and encoding.
- UriConfig: Replace rules, prefix and suffix applied to derived URIs.
- OutputConfig: Manifest directory, format and content toggles.

Key functions:
- load_config(path) -> IngestConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.
- generate_default_config(...) -> IngestConfig: Build a first-run config.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from delimited_ingest.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ","


class SourceConfig(BaseModel):
    """Source file information."""

    input_path: str = Field(..., description="Path to the delimited text file")


class ReaderConfig(BaseModel):
    """Options recognized by the delimited text reader."""

    delimiter: str = Field(
        DEFAULT_DELIMITER, description="Single field separator character"
    )
    id_column: str | None = Field(
        None,
        description=(
            "Header column whose value becomes the document URI. "
            "If omitted, the first column is used."
        ),
    )
    encoding: str | None = Field(
        None, description="Character encoding of the file; platform default if omitted"
    )

    @field_validator("delimiter")
    @classmethod
    def _check_single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError(
                f"Incorrect delimiter: {value!r}. "
                "The delimiter must be exactly one character."
            )
        return value


class UriConfig(BaseModel):
    """Rules applied to every URI derived from the identifier column.

    ``replace`` pairs are applied first, in order, as
    ``re.sub(pattern, replacement, uri)``; ``prefix`` and ``suffix``
    are then added around the result.
    """

    prefix: str = ""
    suffix: str = ""
    replace: list[tuple[str, str]] = Field(default_factory=list)

    @field_validator("replace")
    @classmethod
    def _check_patterns_compile(
        cls, value: list[tuple[str, str]]
    ) -> list[tuple[str, str]]:
        for pattern, _replacement in value:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(
                    f"Invalid URI replace pattern {pattern!r}: {exc}"
                ) from exc
        return value


class OutputConfig(BaseModel):
    """Manifest output settings."""

    output_dir: str = Field("outputs/", description="Directory for the manifest")
    output_format: Literal["csv", "parquet"] = Field(
        "parquet", description="Manifest file format"
    )
    include_invalid: bool = Field(
        True, description="If True, invalid rows are listed in the manifest"
    )
    include_payload: bool = Field(
        True, description="If True, the serialized envelope is stored per row"
    )


class IngestConfig(BaseModel):
    """Top-level configuration for delimited-ingest.

    Maps 1:1 to ingest.yaml.
    """

    source: SourceConfig
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    uri: UriConfig = Field(default_factory=UriConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path) -> IngestConfig:
    """Read an ``ingest.yaml`` file into an IngestConfig.

    The top level of the file must be a mapping with the ``source``,
    ``reader``, ``uri`` and ``output`` sections; only ``source`` is required.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty or its top level is
            not a mapping.
        pydantic.ValidationError: If a section fails model validation
            (e.g. a multi-character delimiter).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Config file must hold a mapping of sections, "
            f"got {type(raw).__name__}: {path}"
        )
    logger.info("Loaded config from %s", path)
    return IngestConfig.model_validate(raw)


def save_config(config: IngestConfig, path: str | Path) -> None:
    """Write *config* as ``ingest.yaml``.

    Sections keep the model's field order so the file reads source,
    reader, uri, output.  The header names the input file so several
    saved configs can be told apart.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"# delimited-ingest configuration for {config.source.input_path}\n")
        f.write("# reader.id_column: null uses the first header column\n")
        f.write("# uri.replace: [pattern, replacement] pairs, applied before prefix/suffix\n\n")
        yaml.dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
    logger.info("Saved config to %s", path)


def generate_default_config(
    input_path: str,
    output_dir: str = "outputs/",
    delimiter: str = DEFAULT_DELIMITER,
    id_column: str | None = None,
    encoding: str | None = None,
) -> IngestConfig:
    """Build an IngestConfig for a first run.

    Args:
        input_path: Path to the source file.
        output_dir: Where the manifest should be written.
        delimiter: Field separator (single character).
        id_column: Identifier column name, or ``None`` for the first column.
        encoding: Source encoding, or ``None`` for the platform default.

    Returns:
        An IngestConfig with default URI and output settings.
    """
    return IngestConfig(
        source=SourceConfig(input_path=input_path),
        reader=ReaderConfig(
            delimiter=delimiter, id_column=id_column, encoding=encoding
        ),
        output=OutputConfig(output_dir=output_dir),
    )
