# src/idfactor/engine/extractor.py
"""Fragment extraction and record table validation.

extract() is pure: its output depends only on its arguments. That is what
lets every fragment kind walk the table in its own shuffled order without
coordinating with the others.
"""

from __future__ import annotations

from collections.abc import Sequence

from idfactor.contracts.errors import DuplicateRecordIdError, SchemaViolationError
from idfactor.contracts.results import Fragment
from idfactor.contracts.schema import FragmentSpec, RecordSchema

Record = Sequence[str]
RecordTable = Sequence[Record]


def check_record_length(record: Record, schema: RecordSchema, row_index: int | None = None) -> None:
    """Raise SchemaViolationError unless the record has the schema's field count."""
    if len(record) != schema.record_length:
        raise SchemaViolationError(row_index, schema.record_length, len(record))


def validate_table(records: RecordTable, schema: RecordSchema) -> None:
    """Validate every record before any output is produced.

    A single malformed row usually means the whole input is malformed, so
    the first bad row aborts the run.

    Raises:
        SchemaViolationError: If any record has the wrong field count
        DuplicateRecordIdError: If two records share a record id
    """
    seen: dict[str, int] = {}
    id_position = schema.record_id_position
    for i, record in enumerate(records):
        check_record_length(record, schema, i)
        record_id = record[id_position]
        if record_id in seen:
            raise DuplicateRecordIdError(seen[record_id], i)
        seen[record_id] = i


def extract(record: Record, schema: RecordSchema, spec: FragmentSpec, surrogate_id: str) -> Fragment | None:
    """Extract one fragment from a full identity record.

    Args:
        record: Full identity record laid out per ``schema``
        schema: Active record schema
        spec: Fragment kind to extract
        surrogate_id: Id to tag the fragment with

    Returns:
        The fragment, or None when every source field is empty (suppressed)

    Raises:
        SchemaViolationError: If the record has the wrong field count
    """
    check_record_length(record, schema)
    values = tuple(record[position] for position in spec.source_positions)
    if all(value == "" for value in values):
        return None
    breach_id = None
    if spec.include_breach_id:
        if schema.breach_id_position is None:
            raise ValueError(f"fragment '{spec.kind}' expects a breach id but schema {schema.variant.value} has none")
        breach_id = record[schema.breach_id_position]
    return Fragment(surrogate_id=surrogate_id, values=values, breach_id=breach_id)
