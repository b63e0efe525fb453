"""
Custom exception hierarchy for delimited-ingest.

Only structural problems are raised: a header that cannot supply the
configured identifier column, an unusable config file, or a failed
manifest write.  Row-level anomalies (column count mismatch, empty
identifier, URI encoding failure) are never raised -- they are logged
and reported as ``InvalidRecord`` results.
"""


class DelimitedIngestError(Exception):
    """Base exception for all delimited-ingest errors."""


class ConfigValidationError(DelimitedIngestError):
    """Raised when ingest.yaml is empty or semantically unusable.

    Schema violations (wrong types, multi-character delimiter) surface
    as ``pydantic.ValidationError`` instead.
    """


class ParsingError(DelimitedIngestError):
    """Raised when the header cannot be resolved.

    The configured identifier column was not found among the header
    columns.  The whole stream is unusable: no record is emitted.
    """


class ExportError(DelimitedIngestError):
    """Raised when the manifest cannot be written.

    For example, permission errors, disk full, or unsupported format.
    """
