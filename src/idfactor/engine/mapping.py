# src/idfactor/engine/mapping.py
"""Identity map assembly and persistence.

The identity map is the only artifact that links fragment stores back to
the original records. Producing it is optional, and protecting it is the
caller's responsibility.

Known leak: a suppressed fragment shows up as an empty cell, so anyone
holding the map learns which records had no value for that attribute group.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from idfactor.contracts.errors import SinkWriteError
from idfactor.contracts.results import EMPTY_MARKER, ArtifactDescriptor, FragmentStoreResult, IdentityMap
from idfactor.contracts.schema import RECORD_ID_FIELD, FragmentSpec, RecordSchema
from idfactor.engine.extractor import RecordTable
from idfactor.engine.writer import check_delimiter, make_row_writer
from idfactor.sinks.base import ArtifactSink

logger = structlog.get_logger(__name__)


def build_identity_map(
    records: RecordTable,
    schema: RecordSchema,
    specs: Sequence[FragmentSpec],
    stores: Sequence[FragmentStoreResult],
) -> IdentityMap:
    """Join per-kind id maps into one row per record, in input order.

    Args:
        records: The record table the stores were written from
        schema: Active record schema
        specs: Configured fragment specs, in column order
        stores: Store results, one per spec, in the same order

    Returns:
        IdentityMap whose row order is the input record order
    """
    if [spec.kind for spec in specs] != [store.kind for store in stores]:
        raise ValueError("store results do not line up with the configured fragment specs")
    id_position = schema.record_id_position
    columns = (RECORD_ID_FIELD, *(spec.id_column for spec in specs))
    rows = tuple(
        (record[id_position], *(store.id_map.get(record[id_position], EMPTY_MARKER) for store in stores))
        for record in records
    )
    return IdentityMap(columns=columns, rows=rows)


def persist_identity_map(identity_map: IdentityMap, sink: ArtifactSink, *, delimiter: str = "|") -> ArtifactDescriptor:
    """Write the identity map to a sink and publish it.

    Same delimiter and line terminator as the fragment stores: a header
    row, then one row per record in input order.

    Raises:
        SinkWriteError: If writing, flushing or publishing fails
    """
    check_delimiter(delimiter)
    try:
        handle = sink.open()
        try:
            rows = make_row_writer(handle, delimiter)
            rows.writerow(identity_map.columns)
            rows.writerows(identity_map.rows)
            handle.flush()
        except OSError as e:
            raise SinkWriteError(sink.target, f"error writing identity map: {e}") from e
        artifact = sink.commit()
    except BaseException:
        sink.discard()
        raise
    sink.finalize()

    logger.info("identity_map_persisted", rows=len(identity_map), columns=len(identity_map.columns))
    return artifact
