"""
URI derivation for delimited-ingest.

Turns a trimmed identifier value into a document URI:

1. ``encode_uri()`` percent-encodes characters that are not legal in a
   URI path and rejects values that cannot form a relative URI.
2. ``UriBuilder`` applies the configured replace rules, then the
   prefix and suffix, to every non-empty encoded URI.

The reader only needs a ``Callable[[str], str | None]``; ``None`` means
the value could not be encoded and the row is reported as invalid.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional
from urllib.parse import quote

from delimited_ingest.config import UriConfig

logger = logging.getLogger(__name__)

UriEncoder = Callable[[str], Optional[str]]

# Characters kept verbatim in a URI path (RFC 3986 pchar + "/").
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


def encode_uri(value: str) -> str | None:
    """Encode *value* as a relative URI path.

    Returns ``None`` if the value cannot form a relative URI: a colon in
    the first path segment would be read as a scheme, and lone
    surrogates cannot be encoded as UTF-8.
    """
    first_segment = value.split("/", 1)[0]
    if ":" in first_segment:
        logger.error(
            "Error parsing value as URI, skipping %s: "
            "relative path has a colon in its first segment",
            value,
        )
        return None
    try:
        return quote(value, safe=_PATH_SAFE, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as exc:
        logger.error("Error parsing value as URI, skipping %r: %s", value, exc)
        return None


class UriBuilder:
    """Callable URI encoder applying ``UriConfig`` rules.

    Args:
        config: Replace rules, prefix and suffix.
        encoder: Base encoder; defaults to ``encode_uri``.
    """

    def __init__(
        self,
        config: UriConfig | None = None,
        encoder: UriEncoder = encode_uri,
    ) -> None:
        self.config = config or UriConfig()
        self._encoder = encoder
        self._replace = [
            (re.compile(pattern), replacement)
            for pattern, replacement in self.config.replace
        ]

    def __call__(self, value: str) -> str | None:
        uri = self._encoder(value)
        if not uri:
            return uri
        for pattern, replacement in self._replace:
            uri = pattern.sub(replacement, uri)
        return f"{self.config.prefix}{uri}{self.config.suffix}"
