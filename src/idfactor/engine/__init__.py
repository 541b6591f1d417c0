"""Factoring engine: extraction, fragment writers, orchestration, identity map."""

from idfactor.engine.extractor import Record, RecordTable, check_record_length, extract, validate_table
from idfactor.engine.mapping import build_identity_map, persist_identity_map
from idfactor.engine.orchestrator import IdentityFactorer, factor
from idfactor.engine.runner import RunOutcome, run_to_directory
from idfactor.engine.writer import FragmentWriter

__all__ = [
    "FragmentWriter",
    "IdentityFactorer",
    "Record",
    "RecordTable",
    "RunOutcome",
    "build_identity_map",
    "check_record_length",
    "extract",
    "factor",
    "persist_identity_map",
    "run_to_directory",
    "validate_table",
]
