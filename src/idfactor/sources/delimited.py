# src/idfactor/sources/delimited.py
"""Delimited text reader for identity record tables.

Loads the whole table into memory: every fragment writer needs random
access to all records in its own shuffled order.
"""

from __future__ import annotations

import csv
from typing import IO

import structlog

from idfactor.contracts.errors import RecordSourceError, SchemaViolationError

logger = structlog.get_logger(__name__)


def read_records(stream: IO[str], *, delimiter: str, record_length: int) -> tuple[tuple[str, ...], ...]:
    """Read a header row plus identity records from a delimited text stream.

    The header row is checked for width and then discarded; columns are
    positional. Blank lines are skipped.

    Args:
        stream: Text stream opened with newline=""
        delimiter: Single field delimiter character
        record_length: Required number of fields per row

    Returns:
        Records in input order

    Raises:
        RecordSourceError: If the input has no header row or is not valid
            delimited text
        SchemaViolationError: If a data row has the wrong number of fields
            (row_index is the zero-based record position)
    """
    reader = csv.reader(stream, delimiter=delimiter, strict=True)
    records: list[tuple[str, ...]] = []
    try:
        header = next((row for row in reader if row), None)
        if header is None:
            raise RecordSourceError("input is empty: expected a header row")
        if len(header) != record_length:
            raise RecordSourceError(f"header has {len(header)} fields, expected {record_length}")
        for row in reader:
            if not row:
                continue
            if len(row) != record_length:
                raise SchemaViolationError(len(records), record_length, len(row))
            records.append(tuple(row))
    except (csv.Error, UnicodeDecodeError) as e:
        raise RecordSourceError(f"malformed input at line {reader.line_num}: {e}") from e

    logger.info("records_loaded", records=len(records))
    return tuple(records)
