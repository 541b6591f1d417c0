# src/idfactor/engine/runner.py
"""Run factoring against a directory, driven by FactorSettings.

This is the file-system wiring used by the CLI: one FileSink per configured
fragment kind in the output directory, plus the optional identity map file.
Stores from an earlier run in the same directory are only replaced once the
whole new run, map included, has been written.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from idfactor.contracts.results import ArtifactDescriptor, FactorResult
from idfactor.core.config import FactorSettings
from idfactor.engine.extractor import RecordTable
from idfactor.engine.mapping import persist_identity_map
from idfactor.engine.orchestrator import IdentityFactorer
from idfactor.sinks.base import ArtifactSink
from idfactor.sinks.file_sink import FileSink

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Result of a directory run.

    Attributes:
        result: Fragment store results and the identity map
        map_artifact: Descriptor of the identity map file, None if not requested
    """

    result: FactorResult
    map_artifact: ArtifactDescriptor | None = None


def run_to_directory(records: RecordTable, settings: FactorSettings) -> RunOutcome:
    """Write all configured fragment stores (and the map) under settings.output_dir.

    If the identity map was requested but cannot be written, the fragment
    stores committed by this run are removed again and any files they
    replaced are restored.

    Raises:
        IdFactorError: Any engine failure; nothing from this run is left behind
    """
    factorer = IdentityFactorer(
        settings.schema,
        settings.fragment_specs,
        delimiter=settings.output_delimiter,
        max_workers=settings.max_workers,
    )
    sinks: dict[str, ArtifactSink] = {
        spec.kind: FileSink(settings.output_dir / spec.filename, encoding=settings.encoding) for spec in factorer.specs
    }
    result = factorer.factor(records, sinks, finalize=False)

    map_artifact: ArtifactDescriptor | None = None
    map_path = settings.map_path
    if map_path is not None:
        try:
            map_artifact = persist_identity_map(
                result.identity_map,
                FileSink(map_path, encoding=settings.encoding),
                delimiter=settings.output_delimiter,
            )
        except BaseException:
            for sink in sinks.values():
                sink.discard()
            logger.error("factoring_aborted", phase="identity_map", stores_retracted=len(sinks))
            raise

    for sink in sinks.values():
        sink.finalize()
    return RunOutcome(result=result, map_artifact=map_artifact)
