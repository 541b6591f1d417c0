"""Shared contracts for idfactor.

This package holds the data types and errors that every other subsystem
depends on. It imports nothing from core/, engine/ or sinks/.
"""

from idfactor.contracts.enums import RecordVariant
from idfactor.contracts.errors import (
    DuplicateRecordIdError,
    FactoringTaskError,
    IdFactorError,
    InvalidShuffleSizeError,
    RandomSourceError,
    RecordSourceError,
    SchemaViolationError,
    SinkWriteError,
    UnknownFragmentError,
)
from idfactor.contracts.results import (
    EMPTY_MARKER,
    ArtifactDescriptor,
    FactorResult,
    Fragment,
    FragmentStoreResult,
    IdentityMap,
)
from idfactor.contracts.schema import BREACH_ID_FIELD, RECORD_ID_FIELD, FragmentSpec, RecordSchema

__all__ = [
    "BREACH_ID_FIELD",
    "EMPTY_MARKER",
    "RECORD_ID_FIELD",
    "ArtifactDescriptor",
    "DuplicateRecordIdError",
    "FactorResult",
    "FactoringTaskError",
    "Fragment",
    "FragmentSpec",
    "FragmentStoreResult",
    "IdFactorError",
    "IdentityMap",
    "InvalidShuffleSizeError",
    "RandomSourceError",
    "RecordSchema",
    "RecordSourceError",
    "RecordVariant",
    "SchemaViolationError",
    "SinkWriteError",
    "UnknownFragmentError",
]
