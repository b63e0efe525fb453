"""
Output slots for serialized records.

Each supported output representation is one ``Payload`` subclass with
a single write capability, ``set_text()``.  The reader writes the
envelope into whichever slot it was given without inspecting its type.

- ``TextPayload``: plain text holder.
- ``NamedPayload``: text plus the name of the file it came from,
  delegating writes to an inner payload.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Payload(ABC):
    """A writable holder for one record's serialized text."""

    @abstractmethod
    def set_text(self, value: str) -> None:
        """Replace the held text with *value*."""

    @property
    @abstractmethod
    def text(self) -> str:
        """The held text."""


class TextPayload(Payload):
    def __init__(self, value: str = "") -> None:
        self._value = value

    def set_text(self, value: str) -> None:
        self._value = value

    @property
    def text(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"TextPayload({self._value!r})"


class NamedPayload(Payload):
    """Payload tagged with its source file name.

    Args:
        file_name: Name of the file the record was read from.
        inner: Slot receiving the text; a fresh ``TextPayload`` if omitted.
    """

    def __init__(self, file_name: str, inner: Payload | None = None) -> None:
        self.file_name = file_name
        self.inner = inner if inner is not None else TextPayload()

    def set_text(self, value: str) -> None:
        self.inner.set_text(value)

    @property
    def text(self) -> str:
        return self.inner.text

    def __repr__(self) -> str:
        return f"NamedPayload(file_name={self.file_name!r}, inner={self.inner!r})"
