# tests/engine/test_extractor.py
"""Tests for fragment extraction and table validation."""

import pytest

from tests.helpers.records import ANN, BO, make_record


class TestExtract:
    """extract() is pure and data-driven by FragmentSpec."""

    def test_name_dob_fragment(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        fragment = extract(ANN, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("name_dob"), "sid")

        assert fragment is not None
        assert fragment.surrogate_id == "sid"
        assert fragment.values == ("Ann", "Lee", "", "", "1980-01-01")
        assert fragment.breach_id is None

    def test_address_fragment_excludes_trailing_blank(self) -> None:
        """zip4 is a store column, not a record value."""
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        fragment = extract(ANN, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("address"), "sid")

        assert fragment is not None
        assert fragment.values == ("1 Main", "", "Springfield", "IL", "62701")

    def test_all_empty_fragment_suppressed(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        assert extract(BO, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("ssn"), "sid") is None
        assert extract(BO, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("address"), "sid") is None

    def test_partially_empty_fragment_kept(self) -> None:
        """A single non-empty source field is enough to write the fragment."""
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        record = make_record("9", city="Springfield")
        fragment = extract(record, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("address"), "sid")

        assert fragment is not None
        assert fragment.values == ("", "", "Springfield", "", "")

    def test_whitespace_is_not_empty(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        record = make_record("9", ssn=" ")
        assert extract(record, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("ssn"), "sid") is not None

    def test_compromised_fragment_carries_breach_id(self) -> None:
        from idfactor.core.schemas import COMPROMISED_SCHEMA
        from idfactor.engine.extractor import extract

        record = make_record("1", breach_id="B-42", phone="555-1212")
        fragment = extract(record, COMPROMISED_SCHEMA, COMPROMISED_SCHEMA.fragment("phone"), "sid")

        assert fragment is not None
        assert fragment.breach_id == "B-42"
        assert fragment.to_row() == ["B-42", "sid", "555-1212"]

    def test_breach_id_alone_does_not_prevent_suppression(self) -> None:
        """Only source fields decide suppression."""
        from idfactor.core.schemas import COMPROMISED_SCHEMA
        from idfactor.engine.extractor import extract

        record = make_record("1", breach_id="B-42")
        assert extract(record, COMPROMISED_SCHEMA, COMPROMISED_SCHEMA.fragment("phone"), "sid") is None

    def test_wrong_length_raises(self) -> None:
        from idfactor.contracts.errors import SchemaViolationError
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        with pytest.raises(SchemaViolationError) as exc_info:
            extract(ANN[:13], AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("ssn"), "sid")
        assert exc_info.value.expected == 14
        assert exc_info.value.actual == 13

    def test_does_not_modify_record(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import extract

        record = list(ANN)
        extract(record, AT_RISK_SCHEMA, AT_RISK_SCHEMA.fragment("name_phone"), "sid")
        assert tuple(record) == ANN


class TestValidateTable:
    def test_valid_table(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import validate_table

        validate_table((ANN, BO), AT_RISK_SCHEMA)

    def test_empty_table_is_valid(self) -> None:
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import validate_table

        validate_table((), AT_RISK_SCHEMA)

    def test_reports_first_bad_row(self) -> None:
        from idfactor.contracts.errors import SchemaViolationError
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import validate_table

        with pytest.raises(SchemaViolationError) as exc_info:
            validate_table((ANN, BO[:13], ANN[:2]), AT_RISK_SCHEMA)
        assert exc_info.value.row_index == 1

    def test_duplicate_record_id(self) -> None:
        from idfactor.contracts.errors import DuplicateRecordIdError
        from idfactor.core.schemas import AT_RISK_SCHEMA
        from idfactor.engine.extractor import validate_table

        with pytest.raises(DuplicateRecordIdError) as exc_info:
            validate_table((ANN, BO, make_record("1", ssn="x")), AT_RISK_SCHEMA)
        assert exc_info.value.first_index == 0
        assert exc_info.value.duplicate_index == 2
