"""
Manifest builder for delimited-ingest.

The manifest is the load report of one run: one row per emitted item
(valid or invalid).  It records what the reader did so a bulk load can
be audited and invalid rows fixed at the source.

Columns:
- ``line_number``: 1-based physical line in the source file.
- ``status``: ``"valid"`` or ``"invalid"``.
- ``key``: derived URI (valid rows only).
- ``reason``: ``RowError`` value (invalid rows only).
- ``message``: diagnostic text (invalid rows only).
- ``payload``: envelope text (valid rows, when payloads are included).
- ``source_file``, ``source_hash``, ``processed_at``: run lineage.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import pandas as pd

from delimited_ingest.parsers.base import InvalidRecord, Record

logger = logging.getLogger(__name__)

MANIFEST_COLUMNS = [
    "line_number", "status", "key", "reason", "message", "payload",
    "source_file", "source_hash", "processed_at",
]


_DIGEST_CHUNK = 1 << 20


def _source_digest(path: Path) -> str:
    """SHA-256 of the source file, or ``""`` when it is no longer on disk.

    Ties every manifest row to the exact bytes that were read, so a
    re-exported file with the same name is not mistaken for the loaded one.
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(_DIGEST_CHUNK)
                if not chunk:
                    break
                digest.update(chunk)
    except FileNotFoundError:
        logger.warning("Source file not found for hashing: %s (using empty hash)", path)
        return ""
    return digest.hexdigest()


def build_manifest(
    records: Iterable[Record],
    source_path: str | Path,
    include_invalid: bool = True,
    include_payload: bool = True,
) -> pd.DataFrame:
    """Build the manifest DataFrame from record results.

    Args:
        records: Record results in emission order.  Consumed once, so a
            live reader or generator can be passed without buffering it.
        source_path: The file the records were read from.
        include_invalid: If False, invalid rows are left out.
        include_payload: If False, the ``payload`` column is left empty.

    Returns:
        DataFrame with ``MANIFEST_COLUMNS`` in that order.
    """
    source_path = Path(source_path)
    source_hash = _source_digest(source_path)
    processed_at = datetime.now(timezone.utc).isoformat(timespec="seconds")

    rows: list[dict] = []
    for record in records:
        if isinstance(record, InvalidRecord):
            if not include_invalid:
                continue
            row = {
                "line_number": record.line_number,
                "status": "invalid",
                "key": None,
                "reason": record.reason.value,
                "message": record.message,
                "payload": None,
            }
        else:
            row = {
                "line_number": record.line_number,
                "status": "valid",
                "key": record.key,
                "reason": None,
                "message": None,
                "payload": record.payload if include_payload else None,
            }
        row["source_file"] = source_path.name
        row["source_hash"] = source_hash
        row["processed_at"] = processed_at
        rows.append(row)

    logger.info("Built manifest: %d rows", len(rows))
    return pd.DataFrame(rows, columns=MANIFEST_COLUMNS)
