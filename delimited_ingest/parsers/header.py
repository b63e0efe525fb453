"""
Header resolution for delimited text files.

The first non-blank line of a file names the columns.  One of them is
the identifier column, chosen once per stream:

- no configured name -> the first column;
- otherwise the first column whose trimmed name equals the configured
  name.  No match is fatal (``ParsingError``).

Column names have a leading UTF-8 byte-order mark removed.  Files saved
by spreadsheet tools often start with one, and when the platform decoder
does not drop it, it ends up glued to the first column name.
"""

from __future__ import annotations

import locale
import logging
from collections import Counter
from dataclasses import dataclass

from delimited_ingest.exceptions import ParsingError

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


@dataclass(frozen=True)
class Header:
    """Resolved column layout of a stream.

    Attributes:
        columns: Column names in file order (BOM stripped, not trimmed).
        id_index: Index of the identifier column in ``columns``.
    """
    columns: tuple[str, ...]
    id_index: int

    @property
    def id_name(self) -> str:
        return self.columns[self.id_index]

    def __len__(self) -> int:
        return len(self.columns)


def _bom_prefix_length(field: str, encoding: str) -> int:
    """Number of leading characters of *field* that encode to the BOM bytes."""
    try:
        raw = field.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return 0
    if raw[:3] != UTF8_BOM:
        return 0
    for length in range(1, min(len(field), 3) + 1):
        if field[:length].encode(encoding) == UTF8_BOM:
            return length
    return 0


def strip_bom(field: str, encoding: str | None = None) -> str:
    """Remove a leading UTF-8 byte-order mark from *field*.

    The mark is looked for in the bytes of *field* re-encoded with the
    charset the line was decoded with (platform default if ``None``),
    so a BOM read through a single-byte codec such as latin-1 (where it
    arrives as three characters) is removed as well as the single
    U+FEFF character a UTF-8 decoder leaves behind.
    """
    for charset in (encoding or locale.getpreferredencoding(False), "utf-8"):
        length = _bom_prefix_length(field, charset)
        if length:
            return field[length:]
    return field


def resolve_header(
    line: str,
    delimiter: str,
    id_column: str | None = None,
    encoding: str | None = None,
) -> Header:
    """Split a header line and locate the identifier column.

    Args:
        line: First non-blank line of the stream, terminator removed.
        delimiter: Single-character field separator.
        id_column: Configured identifier column name, or ``None`` to use
            the first column.
        encoding: Charset the line was decoded with; ``None`` for the
            platform default.

    Returns:
        The resolved ``Header``.

    Raises:
        ParsingError: If *id_column* matches no column.
    """
    columns = tuple(strip_bom(field, encoding) for field in line.split(delimiter))

    if id_column is None:
        id_index = 0
    else:
        id_index = next(
            (i for i, name in enumerate(columns) if name.strip() == id_column),
            -1,
        )
        if id_index < 0:
            logger.debug("Header: %s", line)
            raise ParsingError(
                f"Identifier column {id_column!r} is not found. "
                f"Header columns: {[c.strip() for c in columns]}"
            )

    duplicates = sorted(name for name, count in Counter(columns).items() if count > 1)
    if duplicates:
        logger.warning("Duplicate column names in header: %s", duplicates)

    header = Header(columns=columns, id_index=id_index)
    logger.info(
        "Resolved header: %d columns, identifier column %r (index %d)",
        len(header), header.id_name, id_index,
    )
    return header
