"""Result types produced by the factoring engine.

These types answer: "What did a run produce?"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

# Mapping cell for a record whose fragment of a kind was suppressed
EMPTY_MARKER = ""


@dataclass(frozen=True, slots=True)
class Fragment:
    """One record's share of a fragment kind, tagged with a surrogate id.

    ``values`` are the record's source field values in the FragmentSpec's
    declared order. ``breach_id`` is None unless the schema is the
    compromised variant.
    """

    surrogate_id: str
    values: tuple[str, ...]
    breach_id: str | None = None

    def to_row(self) -> list[str]:
        """Serialize as a store row: [breach_id,] surrogate_id, values..."""
        prefix = [] if self.breach_id is None else [self.breach_id]
        return [*prefix, self.surrogate_id, *self.values]


@dataclass(frozen=True, slots=True)
class ArtifactDescriptor:
    """Descriptor for an artifact published by a sink.

    Attributes:
        artifact_type: "file" for published files, "stream" for wrapped text streams
        path_or_uri: Where the artifact was published
        content_hash: SHA-256 of the encoded artifact content
        size_bytes: Size of the encoded artifact content
    """

    artifact_type: Literal["file", "stream"]
    path_or_uri: str
    content_hash: str
    size_bytes: int

    @classmethod
    def for_file(cls, path: str, content_hash: str, size_bytes: int) -> ArtifactDescriptor:
        """Create descriptor for file-based artifacts."""
        return cls(
            artifact_type="file",
            path_or_uri=f"file://{path}",
            content_hash=content_hash,
            size_bytes=size_bytes,
        )

    @classmethod
    def for_stream(cls, name: str, content_hash: str, size_bytes: int) -> ArtifactDescriptor:
        """Create descriptor for artifacts written to an open text stream."""
        return cls(
            artifact_type="stream",
            path_or_uri=f"stream://{name}",
            content_hash=content_hash,
            size_bytes=size_bytes,
        )


@dataclass(frozen=True, slots=True)
class FragmentStoreResult:
    """Outcome of staging one fragment store.

    Attributes:
        kind: Fragment kind that was written
        id_map: record_id -> surrogate_id, only for records whose fragment was written
        rows_written: Data rows written (header excluded)
        rows_suppressed: Records skipped because every source field was empty
        artifact: Descriptor of the published store, None while only staged
    """

    kind: str
    id_map: Mapping[str, str]
    rows_written: int
    rows_suppressed: int
    artifact: ArtifactDescriptor | None = None


@dataclass(frozen=True, slots=True)
class IdentityMap:
    """Record id -> surrogate id per fragment kind, in input record order.

    Built once by the orchestrator after every fragment writer finished and
    never modified afterwards. A cell holds EMPTY_MARKER when that record's
    fragment of the column's kind was suppressed.
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    def __len__(self) -> int:
        return len(self.rows)

    def record_ids(self) -> list[str]:
        return [row[0] for row in self.rows]

    def lookup(self, record_id: str) -> dict[str, str]:
        """Return the surrogate id columns for one record id.

        Raises:
            KeyError: If the record id is not in the map
        """
        for row in self.rows:
            if row[0] == record_id:
                return dict(zip(self.columns[1:], row[1:], strict=True))
        raise KeyError(record_id)


@dataclass(frozen=True, slots=True)
class FactorResult:
    """Everything a factoring run produced.

    Attributes:
        identity_map: Assembled mapping in input record order
        stores: Per-kind outcome with its committed artifact, in configured order
    """

    identity_map: IdentityMap
    stores: tuple[FragmentStoreResult, ...]

    @property
    def artifacts(self) -> dict[str, ArtifactDescriptor]:
        return {store.kind: store.artifact for store in self.stores if store.artifact is not None}

    def store(self, kind: str) -> FragmentStoreResult:
        for store in self.stores:
            if store.kind == kind:
                return store
        raise KeyError(kind)
