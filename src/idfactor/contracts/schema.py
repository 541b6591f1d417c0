"""Record layout and fragment declarations.

These types answer: "Which fields does a record carry, and how are they
grouped into fragments?"

A RecordSchema is a plain data value. Fragment extraction is one shared
routine parameterized by a FragmentSpec, so adding a fragment kind means
adding a table entry, not a function.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from idfactor.contracts.enums import RecordVariant
from idfactor.contracts.errors import UnknownFragmentError

RECORD_ID_FIELD = "record_id"
BREACH_ID_FIELD = "breach_id"


@dataclass(frozen=True, slots=True)
class FragmentSpec:
    """Declaration of one fragment kind.

    Attributes:
        kind: Fragment kind name (e.g. "name_dob"), also the output file stem
        id_column: Header name of the surrogate id column (e.g. "name_id")
        source_fields: Record field names copied into the fragment, in order
        source_positions: Record positions of source_fields, resolved by the schema
        trailing_blank: Header columns always written empty after the source fields
        include_breach_id: Prefix every row with the record's breach id
    """

    kind: str
    id_column: str
    source_fields: tuple[str, ...]
    source_positions: tuple[int, ...]
    trailing_blank: tuple[str, ...] = ()
    include_breach_id: bool = False

    def __post_init__(self) -> None:
        if not self.source_fields:
            raise ValueError(f"fragment '{self.kind}' must draw from at least one field")
        if len(self.source_fields) != len(self.source_positions):
            raise ValueError(f"fragment '{self.kind}' has {len(self.source_fields)} fields but {len(self.source_positions)} positions")

    @property
    def header(self) -> tuple[str, ...]:
        """Column names of the fragment store, surrogate id column first."""
        prefix = (BREACH_ID_FIELD,) if self.include_breach_id else ()
        return (*prefix, self.id_column, *self.source_fields, *self.trailing_blank)

    @property
    def filename(self) -> str:
        return f"{self.kind}_elements.psv"


@dataclass(frozen=True, slots=True)
class RecordSchema:
    """Positional field layout of an identity record plus its fragment kinds.

    The record id is always the first field. ``breach_id_position`` is set
    only for the compromised variant.
    """

    variant: RecordVariant
    field_names: tuple[str, ...]
    fragments: tuple[FragmentSpec, ...]
    breach_id_position: int | None = None
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.field_names or self.field_names[0] != RECORD_ID_FIELD:
            raise ValueError(f"first field must be '{RECORD_ID_FIELD}'")
        if len(set(self.field_names)) != len(self.field_names):
            raise ValueError("duplicate field names in record schema")
        kinds = [spec.kind for spec in self.fragments]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"duplicate fragment kinds: {kinds}")
        # frozen dataclass: assign the derived index through object.__setattr__
        object.__setattr__(self, "_positions", {name: i for i, name in enumerate(self.field_names)})

    @property
    def record_length(self) -> int:
        return len(self.field_names)

    @property
    def record_id_position(self) -> int:
        return 0

    @property
    def kinds(self) -> list[str]:
        return [spec.kind for spec in self.fragments]

    def position(self, name: str) -> int:
        """Return the record position of a field name."""
        return self._positions[name]

    def fragment(self, kind: str) -> FragmentSpec:
        """Return the FragmentSpec for a kind.

        Raises:
            UnknownFragmentError: If the schema declares no such kind
        """
        for spec in self.fragments:
            if spec.kind == kind:
                return spec
        raise UnknownFragmentError(kind, self.kinds)

    def select(self, kinds: Sequence[str] | None) -> tuple[FragmentSpec, ...]:
        """Return the configured fragment specs in schema declaration order.

        Args:
            kinds: Subset of fragment kinds to keep, or None for all of them

        Raises:
            UnknownFragmentError: If a requested kind is not declared
        """
        if kinds is None:
            return self.fragments
        wanted = set(kinds)
        for kind in kinds:
            self.fragment(kind)
        return tuple(spec for spec in self.fragments if spec.kind in wanted)
