"""
Manifest exporter for delimited-ingest.

Writes the manifest DataFrame to the output directory as
``manifest.{format}``.  Parquet (via pyarrow, with a fixed column schema)
is the default; CSV is written with ``utf-8-sig`` so spreadsheet tools
detect the encoding.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from delimited_ingest.exceptions import ExportError

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet"}

MANIFEST_NAME = "manifest"


def _manifest_schema(df: pd.DataFrame) -> pa.Schema:
    """Arrow schema for *df*: integer line numbers, every other column text.

    Columns that are entirely empty in a run (``key`` when every row is
    invalid, ``payload`` when payloads are excluded) would otherwise be
    inferred as the null type, and manifests from different runs could
    not be read together.
    """
    return pa.schema([
        pa.field(name, pa.int64() if name == "line_number" else pa.string())
        for name in df.columns
    ])


def _write_dataframe(
    df: pd.DataFrame,
    path: Path,
    output_format: str,
) -> None:
    """Write the manifest to *path*.

    Raises:
        ExportError: If the frame does not fit the manifest schema or the
            write fails.
    """
    try:
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8-sig")
        else:  # parquet
            table = pa.Table.from_pandas(
                df, schema=_manifest_schema(df), preserve_index=False
            )
            pq.write_table(table, path)
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc


def export_manifest(
    manifest_df: pd.DataFrame,
    output_dir: str | Path,
    output_format: Literal["csv", "parquet"] = "parquet",
) -> str:
    """Write the manifest to ``{output_dir}/manifest.{format}``.

    The output directory is created recursively if it does not exist.

    Returns:
        Path of the written file, as a string.

    Raises:
        ExportError: If *output_format* is unsupported, or if the write fails.
    """
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    path = out / f"{MANIFEST_NAME}.{output_format}"
    _write_dataframe(manifest_df, path, output_format)
    logger.info("Exported manifest -> %s (%d rows)", path.name, len(manifest_df))
    return str(path)
