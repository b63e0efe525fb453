"""
Unit tests for output slots (delimited_ingest.payload).
"""

from __future__ import annotations

from delimited_ingest.payload import NamedPayload, TextPayload


class TestTextPayload:

    def test_set_text_replaces(self):
        payload = TextPayload("old")
        payload.set_text("new")
        assert payload.text == "new"

    def test_default_empty(self):
        assert TextPayload().text == ""


class TestNamedPayload:

    def test_delegates_to_inner(self):
        inner = TextPayload()
        payload = NamedPayload("people.csv", inner)
        payload.set_text("<root/>")
        assert inner.text == "<root/>"
        assert payload.text == "<root/>"
        assert payload.file_name == "people.csv"

    def test_default_inner(self):
        payload = NamedPayload("x.tsv")
        payload.set_text("v")
        assert isinstance(payload.inner, TextPayload)
        assert payload.text == "v"
