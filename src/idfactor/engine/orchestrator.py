# src/idfactor/engine/orchestrator.py
"""Factoring orchestrator: fan out one writer per fragment kind, then join.

Run phases:

1. Validate the whole record table. A malformed row aborts the run before
   any sink is opened.
2. Stage every configured fragment store concurrently. Writers share the
   record table read-only and each owns its sink exclusively, so no lock is
   needed anywhere.
3. Wait for all writers. If any failed, discard every sink and raise
   FactoringTaskError; partial results are never collected.
4. Commit every sink. If a commit fails, discard everything committed so far,
   which also restores any store the run replaced.
5. Build the identity map single-threaded, in input record order, so its
   row order never depends on which writer finished first.
6. Finalize every sink, unless the caller still has work that may need the
   commits undone (see engine.runner).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace

import structlog

from idfactor.contracts.errors import FactoringTaskError
from idfactor.contracts.results import FactorResult, FragmentStoreResult
from idfactor.contracts.schema import FragmentSpec, RecordSchema
from idfactor.engine.extractor import RecordTable, validate_table
from idfactor.engine.mapping import build_identity_map
from idfactor.engine.writer import FragmentWriter, check_delimiter
from idfactor.sinks.base import ArtifactSink

logger = structlog.get_logger(__name__)


class IdentityFactorer:
    """Split a record table into independently shuffled fragment stores.

    Usage:
        factorer = IdentityFactorer(AT_RISK_SCHEMA, delimiter="|")
        sinks = {spec.kind: FileSink(out_dir / spec.filename) for spec in factorer.specs}
        result = factorer.factor(records, sinks)

        result.identity_map.columns  # ("record_id", "name_id", "ssn_id", ...)
        result.artifacts["ssn"]      # ArtifactDescriptor of ssn_elements.psv

    Args:
        schema: Active record schema
        specs: Fragment kinds to produce (default: all the schema declares).
            The identity map columns follow this order.
        delimiter: Single-character field delimiter
        max_workers: Concurrent writers (default: one per fragment kind)
    """

    def __init__(
        self,
        schema: RecordSchema,
        specs: Sequence[FragmentSpec] | None = None,
        *,
        delimiter: str = "|",
        max_workers: int | None = None,
    ) -> None:
        check_delimiter(delimiter)
        self._schema = schema
        self._specs = tuple(schema.fragments if specs is None else specs)
        if not self._specs:
            raise ValueError("at least one fragment spec is required")
        kinds = [spec.kind for spec in self._specs]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"duplicate fragment kinds: {kinds}")
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self._delimiter = delimiter
        self._max_workers = max_workers or len(self._specs)

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    @property
    def specs(self) -> tuple[FragmentSpec, ...]:
        return self._specs

    def factor(
        self,
        records: RecordTable,
        sinks: Mapping[str, ArtifactSink],
        *,
        finalize: bool = True,
    ) -> FactorResult:
        """Write every configured fragment store and assemble the identity map.

        Args:
            records: Record table; read concurrently, never modified
            sinks: One sink per configured fragment kind, keyed by kind
            finalize: Finalize the sinks once everything is committed. Pass
                False to keep discard() able to undo the run; the caller then
                finalizes or discards every sink itself.

        Returns:
            FactorResult with the identity map and one committed store per kind

        Raises:
            SchemaViolationError: If any record has the wrong field count
            DuplicateRecordIdError: If two records share a record id
            FactoringTaskError: If any fragment writer failed (cause chained)
            SinkWriteError: If publishing a staged store failed
        """
        missing = [spec.kind for spec in self._specs if spec.kind not in sinks]
        if missing:
            raise ValueError(f"no sink configured for fragment kind(s): {missing}")

        validate_table(records, self._schema)

        staged = self._stage_all(records, sinks)
        stores = self._commit_all(staged, sinks)
        identity_map = build_identity_map(records, self._schema, self._specs, stores)
        if finalize:
            for spec in self._specs:
                sinks[spec.kind].finalize()

        logger.info(
            "fragment_stores_committed",
            records=len(records),
            stores=len(stores),
            rows_written={store.kind: store.rows_written for store in stores},
        )
        return FactorResult(identity_map=identity_map, stores=stores)

    def _stage_all(self, records: RecordTable, sinks: Mapping[str, ArtifactSink]) -> list[FragmentStoreResult]:
        """Run one writer per kind concurrently and join all of them."""
        futures: list[tuple[str, Future[FragmentStoreResult]]] = []
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="idfactor-writer") as pool:
            for spec in self._specs:
                writer = FragmentWriter(self._schema, spec, delimiter=self._delimiter)
                futures.append((spec.kind, pool.submit(writer.stage, records, sinks[spec.kind])))
            wait([future for _, future in futures], return_when=ALL_COMPLETED)

        failures = [(kind, future.exception()) for kind, future in futures if future.exception() is not None]
        if failures:
            self._discard_all(sinks)
            kind, error = failures[0]
            logger.error(
                "factoring_aborted",
                failed_kind=kind,
                failed_writers=len(failures),
                error_type=type(error).__name__,
            )
            raise FactoringTaskError(kind, error) from error

        return [future.result() for _, future in futures]

    def _commit_all(
        self,
        staged: list[FragmentStoreResult],
        sinks: Mapping[str, ArtifactSink],
    ) -> tuple[FragmentStoreResult, ...]:
        """Publish every staged store; retract all of them if any publish fails."""
        committed: list[FragmentStoreResult] = []
        try:
            for result in staged:
                artifact = sinks[result.kind].commit()
                committed.append(replace(result, artifact=artifact))
        except BaseException as e:
            self._discard_all(sinks)
            logger.error(
                "factoring_aborted",
                failed_kind=staged[len(committed)].kind,
                phase="commit",
                error_type=type(e).__name__,
            )
            raise
        return tuple(committed)

    def _discard_all(self, sinks: Mapping[str, ArtifactSink]) -> None:
        for spec in self._specs:
            sinks[spec.kind].discard()


def factor(
    records: RecordTable,
    schema: RecordSchema,
    sinks: Mapping[str, ArtifactSink],
    *,
    specs: Sequence[FragmentSpec] | None = None,
    delimiter: str = "|",
    max_workers: int | None = None,
    finalize: bool = True,
) -> FactorResult:
    """Factor a record table into fragment stores in one call.

    See IdentityFactorer.factor for arguments and errors.
    """
    factorer = IdentityFactorer(schema, specs, delimiter=delimiter, max_workers=max_workers)
    return factorer.factor(records, sinks, finalize=finalize)
