"""Error taxonomy for identity factoring.

Every failure in the factoring engine is fatal to the run. Nothing here is
retried or downgraded: a partially written set of fragment stores could leak
more than a failed run, so the engine stops and lets the caller decide how
to terminate.
"""

from __future__ import annotations


class IdFactorError(Exception):
    """Base class for all idfactor failures."""


class SchemaViolationError(IdFactorError):
    """A record's field count does not match the active schema.

    Attributes:
        row_index: Zero-based position of the offending record in its table
        expected: Field count required by the schema
        actual: Field count found in the record
    """

    def __init__(self, row_index: int | None, expected: int, actual: int) -> None:
        self.row_index = row_index
        self.expected = expected
        self.actual = actual
        where = "record" if row_index is None else f"record {row_index}"
        super().__init__(f"bad record length in {where} (expected {expected}, got {actual})")


class InvalidShuffleSizeError(IdFactorError, ValueError):
    """Shuffle requested for a non-positive number of rows."""

    def __init__(self, n: int) -> None:
        self.n = n
        super().__init__(f"shuffle size must be positive, got {n}")


class RandomSourceError(IdFactorError):
    """The operating system's secure random source could not supply bytes."""


class SinkWriteError(IdFactorError):
    """Writing, flushing or publishing an output artifact failed.

    Attributes:
        target: Description of the sink that failed (usually a path)
    """

    def __init__(self, target: str, message: str) -> None:
        self.target = target
        super().__init__(f"{target}: {message}")


class FactoringTaskError(IdFactorError):
    """A fragment writer task failed, aborting the whole factoring run.

    The underlying failure is chained as ``__cause__``.
    """

    def __init__(self, kind: str, cause: BaseException) -> None:
        self.kind = kind
        super().__init__(f"fragment writer '{kind}' failed: {cause}")


class UnknownFragmentError(IdFactorError, KeyError):
    """A requested fragment kind is not declared by the schema."""

    def __init__(self, kind: str, available: list[str]) -> None:
        self.kind = kind
        self.available = available
        super().__init__(kind)

    def __str__(self) -> str:
        return f"unknown fragment kind '{self.kind}'. Available kinds: {self.available}"


class RecordSourceError(IdFactorError):
    """The delimited record input is malformed (bad quoting, missing header)."""


class DuplicateRecordIdError(IdFactorError):
    """Two records in one table share a record id.

    The identity map is keyed by record id, so a repeated id would silently
    attach one record's fragments to another. Only row positions are
    reported; the id itself is personal data.
    """

    def __init__(self, first_index: int, duplicate_index: int) -> None:
        self.first_index = first_index
        self.duplicate_index = duplicate_index
        super().__init__(f"record {duplicate_index} repeats the record id of record {first_index}")
