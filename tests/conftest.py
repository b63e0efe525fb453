"""
Shared test fixtures for delimited-ingest tests.

All tests use synthetic data -- either in-memory streams built with
``make_reader()`` or small files written to ``tmp_path`` via the
``write_file`` fixture.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest

from delimited_ingest.config import ReaderConfig
from delimited_ingest.parsers.delimited import DelimitedTextReader
from delimited_ingest.source import TextStreamSource

# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------
PEOPLE_CSV = (
    "id,name,city\n"
    "1,Alice,Seoul\n"
    "2,Bob,Busan\n"
    "\n"
    "3,Carol\n"
    " ,Dave,Incheon\n"
    "5,Eve,Daegu\n"
)


def make_source(text: str) -> TextStreamSource:
    """Wrap *text* in a line source whose length is its UTF-8 size."""
    return TextStreamSource(io.StringIO(text), len(text.encode("utf-8")), name="mem.csv")


def make_reader(text: str, **config) -> DelimitedTextReader:
    """Build a reader over in-memory *text* with ``ReaderConfig(**config)``."""
    return DelimitedTextReader(make_source(text), config=ReaderConfig(**config))


@pytest.fixture()
def write_file(tmp_path) -> Callable[..., Path]:
    """Return a helper writing text to ``tmp_path/<name>`` and returning the path."""

    def _write(text: str, name: str = "people.csv", encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.write_bytes(text.encode(encoding))
        return path

    return _write


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (writes config and manifest files)",
    )
