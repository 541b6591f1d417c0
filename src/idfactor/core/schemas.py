"""Built-in record schemas.

Two record layouts exist. The at-risk layout is the plain identity record;
the compromised layout inserts a breach identifier right after the record
id, and every fragment it produces carries that breach id as its first
column.

Both layouts share the same seven fragment kinds, declared once in
_FRAGMENT_KINDS and resolved against each layout's field positions.
"""

from __future__ import annotations

from idfactor.contracts.enums import RecordVariant
from idfactor.contracts.schema import BREACH_ID_FIELD, RECORD_ID_FIELD, FragmentSpec, RecordSchema

_NAME_FIELDS = ("first_name", "last_name", "middle_initial", "suffix")
_ADDRESS_FIELDS = ("address_line_1", "address_line_2", "city", "state", "zip")

_IDENTITY_FIELDS = (*_NAME_FIELDS, "dob", "ssn", *_ADDRESS_FIELDS, "phone", "email")

# (kind, id column, source fields, trailing blank columns)
# Addresses carry an always-empty zip4 column expected by downstream loaders.
_FRAGMENT_KINDS: tuple[tuple[str, str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("name_dob", "name_id", (*_NAME_FIELDS, "dob"), ()),
    ("ssn", "ssn_id", ("ssn",), ()),
    ("address", "address_id", _ADDRESS_FIELDS, ("zip4",)),
    ("phone", "phone_id", ("phone",), ()),
    ("email", "email_id", ("email",), ()),
    ("name_address", "name_address_id", (*_NAME_FIELDS, *_ADDRESS_FIELDS), ("zip4",)),
    ("name_phone", "name_phone_id", (*_NAME_FIELDS, "phone"), ()),
)


def build_schema(variant: RecordVariant, field_names: tuple[str, ...]) -> RecordSchema:
    """Resolve the shared fragment kinds against a field layout."""
    positions = {name: i for i, name in enumerate(field_names)}
    compromised = BREACH_ID_FIELD in positions
    fragments = tuple(
        FragmentSpec(
            kind=kind,
            id_column=id_column,
            source_fields=sources,
            source_positions=tuple(positions[name] for name in sources),
            trailing_blank=trailing,
            include_breach_id=compromised,
        )
        for kind, id_column, sources, trailing in _FRAGMENT_KINDS
    )
    return RecordSchema(
        variant=variant,
        field_names=field_names,
        fragments=fragments,
        breach_id_position=positions[BREACH_ID_FIELD] if compromised else None,
    )


AT_RISK_SCHEMA = build_schema(
    RecordVariant.AT_RISK,
    (RECORD_ID_FIELD, *_IDENTITY_FIELDS),
)

COMPROMISED_SCHEMA = build_schema(
    RecordVariant.COMPROMISED,
    (RECORD_ID_FIELD, BREACH_ID_FIELD, *_IDENTITY_FIELDS),
)

_SCHEMAS: dict[RecordVariant, RecordSchema] = {
    RecordVariant.AT_RISK: AT_RISK_SCHEMA,
    RecordVariant.COMPROMISED: COMPROMISED_SCHEMA,
}


def schema_for(variant: RecordVariant) -> RecordSchema:
    """Return the built-in schema for a record variant."""
    return _SCHEMAS[variant]
