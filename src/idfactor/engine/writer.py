# src/idfactor/engine/writer.py
"""Fragment writer: one fragment kind, one shuffled store.

For each fragment kind the writer draws a fresh secure permutation of the
record table, walks the table in that order, and writes one row per
non-suppressed record under a newly generated surrogate id. Row order and
ids are therefore independent of the input and of every other store.
"""

from __future__ import annotations

import csv
import os
from dataclasses import replace
from types import MappingProxyType
from typing import IO, Any

import structlog

from idfactor.contracts.errors import SinkWriteError
from idfactor.contracts.results import FragmentStoreResult
from idfactor.contracts.schema import FragmentSpec, RecordSchema
from idfactor.core.randomness import new_surrogate_id, shuffle
from idfactor.engine.extractor import RecordTable, extract
from idfactor.sinks.base import ArtifactSink

logger = structlog.get_logger(__name__)


def check_delimiter(delimiter: str) -> None:
    """Raise ValueError unless delimiter is a single usable character."""
    if len(delimiter) != 1:
        raise ValueError("delimiter must be exactly one character")
    if delimiter in ('"', "\r", "\n"):
        raise ValueError(f"delimiter {delimiter!r} is not allowed")


def make_row_writer(handle: IO[str], delimiter: str) -> Any:
    """csv writer using the delimiter and the host platform's line terminator."""
    return csv.writer(handle, delimiter=delimiter, lineterminator=os.linesep)


class FragmentWriter:
    """Write the store for one fragment kind.

    Usage:
        writer = FragmentWriter(AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("ssn"))

        # Standalone: stage and publish in one call
        result = writer.write(records, FileSink(out_dir / "ssn_elements.psv"))
        result.id_map  # record_id -> surrogate_id

        # Orchestrated: stage now, let the caller commit every store together
        result = writer.stage(records, sink)
        artifact = sink.commit()
    """

    def __init__(self, schema: RecordSchema, spec: FragmentSpec, *, delimiter: str = "|") -> None:
        check_delimiter(delimiter)
        self._schema = schema
        self._spec = spec
        self._delimiter = delimiter

    @property
    def kind(self) -> str:
        return self._spec.kind

    def stage(self, records: RecordTable, sink: ArtifactSink) -> FragmentStoreResult:
        """Write header and shuffled rows into the sink's staging area.

        The sink is discarded if anything fails, so a failed stage leaves
        nothing behind. An empty table yields a header-only store.

        Raises:
            SchemaViolationError: If a record has the wrong field count
            RandomSourceError: If the secure random source fails
            SinkWriteError: If writing or flushing the staging area fails
        """
        try:
            return self._stage(records, sink)
        except BaseException:
            sink.discard()
            raise

    def write(self, records: RecordTable, sink: ArtifactSink) -> FragmentStoreResult:
        """Stage the store and publish it; the result carries the artifact."""
        result = self.stage(records, sink)
        try:
            artifact = sink.commit()
        except BaseException:
            sink.discard()
            raise
        sink.finalize()
        return replace(result, artifact=artifact)

    def _stage(self, records: RecordTable, sink: ArtifactSink) -> FragmentStoreResult:
        spec = self._spec
        padding = [""] * len(spec.trailing_blank)
        id_position = self._schema.record_id_position
        id_map: dict[str, str] = {}
        suppressed = 0

        handle = sink.open()
        try:
            rows = make_row_writer(handle, self._delimiter)
            rows.writerow(spec.header)
            # shuffle() rejects n < 1; an empty table is a header-only store
            order = shuffle(len(records)) if records else []
            for index in order:
                record = records[index]
                surrogate_id = new_surrogate_id()
                fragment = extract(record, self._schema, spec, surrogate_id)
                if fragment is None:
                    suppressed += 1
                    continue
                rows.writerow([*fragment.to_row(), *padding])
                id_map[record[id_position]] = surrogate_id
            handle.flush()
        except OSError as e:
            raise SinkWriteError(sink.target, f"error writing fragment store '{spec.kind}': {e}") from e

        logger.debug(
            "fragment_store_staged",
            kind=spec.kind,
            rows_written=len(id_map),
            rows_suppressed=suppressed,
        )
        return FragmentStoreResult(
            kind=spec.kind,
            id_map=MappingProxyType(id_map),
            rows_written=len(id_map),
            rows_suppressed=suppressed,
        )
