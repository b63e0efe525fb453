"""
Parsers sub-package for delimited-ingest.

- base.py defines the record result types (``ValidRecord`` /
  ``InvalidRecord``) and the ``BaseRecordReader`` ABC.
- header.py resolves the header line and the identifier column.
- delimited.py implements ``DelimitedTextReader``, the state machine
  that turns data lines into record results.
"""
