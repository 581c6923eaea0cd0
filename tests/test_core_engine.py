"""
Tests for CoreAnonymizationEngine.

This module contains tests for column classification, data type detection,
the per-type strategies and recovered failures.
"""

import datetime
import re
import uuid
from decimal import Decimal

import pytest

from relational_anonymizer import (
    AnonymizationConfig,
    AnonymizationContext,
    AnonymizationType,
    CoreAnonymizationEngine,
    DataType,
    FieldConfig,
    FieldTransformError,
    detect_data_type,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[a-z]+$")


def _context(table, column, value, row=None, anonymized_row=None):
    return AnonymizationContext(
        table_name=table,
        column_name=column,
        original_value=value,
        row_data=row if row is not None else {column: value},
        anonymized_row=anonymized_row if anonymized_row is not None else {},
    )


class TestDetectDataType:
    """Tests for detect_data_type."""

    def test_primitive_types(self):
        """Test detection of common value types."""
        assert detect_data_type(True) == DataType.BOOLEAN
        assert detect_data_type(42) == DataType.NUMBER
        assert detect_data_type(4.5) == DataType.NUMBER
        assert detect_data_type("hello") == DataType.STRING
        assert detect_data_type(None) == DataType.STRING

    def test_dates(self):
        """Test detection of date objects and ISO strings."""
        assert detect_data_type(datetime.date(2024, 1, 1)) == DataType.DATE
        assert detect_data_type(datetime.datetime(2024, 1, 1, 12)) == DataType.DATE
        assert detect_data_type("2024-01-01") == DataType.DATE
        assert detect_data_type("2024-01-01T10:30:00Z") == DataType.DATE

    def test_uuid_and_json(self):
        """Test detection of identifiers and structured values."""
        assert detect_data_type(str(uuid.uuid4())) == DataType.UUID
        assert detect_data_type(uuid.uuid4()) == DataType.UUID
        assert detect_data_type({"a": 1}) == DataType.JSON
        assert detect_data_type([1, 2]) == DataType.JSON

    def test_decimal_is_a_number(self):
        """Test that database NUMERIC values are numbers."""
        assert detect_data_type(Decimal("8500.00")) == DataType.NUMBER


class TestClassifyColumn:
    """Tests for column classification."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = CoreAnonymizationEngine(AnonymizationConfig(seed=1))

    def test_name_heuristics(self):
        """Test classification from column name fragments."""
        cases = {
            "email": AnonymizationType.EMAIL,
            "guest_email": AnonymizationType.EMAIL,
            "phone": AnonymizationType.PHONE,
            "mobile_number": AnonymizationType.PHONE,
            "full_name": AnonymizationType.NAME,
            "nom": AnonymizationType.NAME,
            "address": AnonymizationType.ADDRESS,
            "street": AnonymizationType.ADDRESS,
            "total_amount": AnonymizationType.FINANCIAL,
            "price_per_night": AnonymizationType.FINANCIAL,
            "montant": AnonymizationType.FINANCIAL,
            "company": AnonymizationType.COMPANY,
            "description": AnonymizationType.DESCRIPTION,
            "check_in_date": AnonymizationType.DATE,
            "status": AnonymizationType.GENERIC,
        }

        for column, expected in cases.items():
            assert self.engine.classify_column(column) == expected, column

    def test_fragments_match_whole_words(self):
        """Test that fragments inside longer words do not classify a column."""
        cases = {
            "hotel_name": AnonymizationType.NAME,
            "hotel_address": AnonymizationType.ADDRESS,
            "hotel": AnonymizationType.GENERIC,
            "coffee_count": AnonymizationType.GENERIC,
            "denomination": AnonymizationType.GENERIC,
            "economy_class": AnonymizationType.GENERIC,
            "denoted_by": AnonymizationType.GENERIC,
            "tel": AnonymizationType.PHONE,
            "telephone": AnonymizationType.PHONE,
            "cleaning_fee": AnonymizationType.FINANCIAL,
            "firstName": AnonymizationType.NAME,
            "username": AnonymizationType.NAME,
            "created_at": AnonymizationType.DATE,
        }

        for column, expected in cases.items():
            assert self.engine.classify_column(column) == expected, column

    def test_decimal_sample_keeps_financial(self):
        """Test that Decimal amounts are financial."""
        assert self.engine.classify_column("price", Decimal("10.50")) == (
            AnonymizationType.FINANCIAL
        )

    def test_structured_sample_keeps_name_type(self):
        """Test that a dict sample keeps the type of its column name."""
        assert self.engine.classify_column("address", {"city": "Alger"}) == (
            AnonymizationType.ADDRESS
        )

    def test_email_wins_over_name(self):
        """Test that email_name style columns are emails."""
        assert self.engine.classify_column("email_name") == AnonymizationType.EMAIL

    def test_financial_requires_numeric_sample(self):
        """Test that a text column named like an amount is generic."""
        assert self.engine.classify_column("total_label", "Total") == AnonymizationType.GENERIC
        assert self.engine.classify_column("total", 100) == AnonymizationType.FINANCIAL

    def test_date_requires_date_sample(self):
        """Test that a boolean named like a date is generic."""
        assert self.engine.classify_column("is_updated_at", True) == AnonymizationType.GENERIC

    def test_custom_rule_overrides_classification(self):
        """Test that configured rules are used as-is."""
        rule = FieldConfig("users", "status", AnonymizationType.CUSTOM, lambda v: "redacted")
        engine = CoreAnonymizationEngine(AnonymizationConfig(custom_rules=[rule]))

        assert engine.build_field_config("users", "status") is rule
        assert engine.build_field_config("users", "email").anonymization_type == (
            AnonymizationType.EMAIL
        )


class TestStrategies:
    """Tests for the per-type strategies."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = CoreAnonymizationEngine(AnonymizationConfig(seed=7))

    def _anonymize(self, table, column, value, row=None, anonymized_row=None, engine=None):
        engine = engine or self.engine
        config = engine.build_field_config(table, column, value)
        return engine.anonymize_value(
            value, config, _context(table, column, value, row, anonymized_row)
        )

    def test_none_passes_through(self):
        """Test that null values are not anonymized."""
        result = self._anonymize("users", "email", None)

        assert result.anonymized_value is None
        assert result.was_anonymized is False

    def test_email_is_valid_and_different(self):
        """Test email generation."""
        result = self._anonymize("users", "email", "amina@gmail.com")

        assert result.anonymization_type == AnonymizationType.EMAIL
        assert EMAIL_PATTERN.match(result.anonymized_value)
        assert result.anonymized_value != "amina@gmail.com"

    def test_email_uses_anonymized_name(self):
        """Test that the local part comes from the already anonymized name."""
        row = {"name": "Amina Benali", "email": "amina.benali@gmail.com"}
        result = self._anonymize(
            "users", "email", row["email"], row=row, anonymized_row={"name": "Louis Martin"}
        )

        assert result.anonymized_value.startswith("louis.martin")
        assert "amina" not in result.anonymized_value
        assert "benali" not in result.anonymized_value

    def test_email_never_uses_original_name(self):
        """Test email generation when the name was not anonymized."""
        row = {"name": "Amina Benali", "email": "amina.benali@gmail.com"}
        result = self._anonymize("users", "email", row["email"], row=row)

        assert "amina" not in result.anonymized_value
        assert "benali" not in result.anonymized_value

    def test_email_without_realistic_data(self):
        """Test the non-realistic email format."""
        engine = CoreAnonymizationEngine(
            AnonymizationConfig(generate_realistic_data=False, seed=2)
        )

        result = self._anonymize("users", "email", "a@b.dz", engine=engine)

        assert re.match(r"^user[a-z0-9]{6}@test\.local$", result.anonymized_value)

    def test_phone_preserves_format(self):
        """Test that separators and digit count are kept."""
        original = "0555 12 34 56"
        result = self._anonymize("users", "phone", original)

        value = result.anonymized_value
        assert value != original
        assert len(value) == len(original)
        assert [i for i, ch in enumerate(value) if ch == " "] == [4, 7, 10]

    def test_national_phone_gets_mobile_prefix(self):
        """Test national 10-digit numbers."""
        result = self._anonymize("users", "phone", "0551234567")

        assert result.anonymized_value[:3] in ("055", "056", "057", "066", "067", "077", "078")
        assert len(result.anonymized_value) == 10

    def test_international_phone_uses_address_country(self):
        """Test that the dialing code follows an address sibling."""
        row = {"phone": "+33 6 12 34 56 78", "address": "10 Rue Didouche Mourad, Alger"}
        result = self._anonymize("users", "phone", row["phone"], row=row)

        assert result.anonymized_value.startswith("+21")

    def test_name_is_replaced(self):
        """Test name generation."""
        result = self._anonymize("users", "full_name", "Amina Benali")

        assert isinstance(result.anonymized_value, str)
        assert result.anonymized_value != "Amina Benali"

    def test_financial_range_compliance(self):
        """Test that configured ranges bound the replacement."""
        engine = CoreAnonymizationEngine(
            AnonymizationConfig(financial_ranges={"price": {"min": 1000, "max": 5000}}, seed=3)
        )

        for original in (10, 2500, 999999):
            result = self._anonymize("lofts", "price_per_night", original, engine=engine)
            assert 1000 <= result.anonymized_value <= 5000
            assert isinstance(result.anonymized_value, int)

    def test_financial_jitter_without_range(self):
        """Test proportional jitter when no range matches."""
        result = self._anonymize("reservations", "total_amount", 10000)

        assert 7000 <= result.anonymized_value <= 13000
        assert isinstance(result.anonymized_value, int)

    def test_financial_float_stays_float(self):
        """Test that float amounts stay floats."""
        result = self._anonymize("reservations", "total_amount", 199.99)

        assert isinstance(result.anonymized_value, float)

    def test_small_amounts_never_keep_the_original(self):
        """Test amounts the proportional jitter cannot move."""
        for original in (1, 2, 3):
            for seed in range(5):
                engine = CoreAnonymizationEngine(AnonymizationConfig(seed=seed))
                result = self._anonymize("reservations", "amount", original, engine=engine)

                assert result.anonymized_value != original
                assert isinstance(result.anonymized_value, int)
                assert result.error is None

    def test_decimal_amount_within_range(self):
        """Test that Decimal amounts honor ranges and stay Decimal."""
        engine = CoreAnonymizationEngine(
            AnonymizationConfig(financial_ranges={"price": {"min": 5000, "max": 20000}}, seed=8)
        )

        result = self._anonymize("lofts", "price_per_night", Decimal("8500.00"), engine=engine)

        assert result.anonymization_type == AnonymizationType.FINANCIAL
        assert isinstance(result.anonymized_value, Decimal)
        assert Decimal("5000") <= result.anonymized_value <= Decimal("20000")
        assert result.anonymized_value.as_tuple().exponent == -2

    def test_decimal_amount_jitter(self):
        """Test Decimal amounts without a configured range."""
        result = self._anonymize("reservations", "total_amount", Decimal("10000.00"))

        assert isinstance(result.anonymized_value, Decimal)
        assert result.anonymized_value != Decimal("10000.00")
        assert Decimal("7000") <= result.anonymized_value <= Decimal("13000")

    def test_structured_address_is_rebuilt(self):
        """Test that every leaf of a dict address is replaced."""
        original = {"street": "12 Rue Larbi Ben M'hidi", "city": "Alger", "verified": True}

        result = self._anonymize("users", "address", original)

        value = result.anonymized_value
        assert value is not original
        assert set(value) == {"street", "city", "verified"}
        assert value["street"] != original["street"]
        assert value["city"] != "Alger"
        assert isinstance(value["verified"], bool)
        assert result.error is None
        assert original["street"] == "12 Rue Larbi Ben M'hidi"

    def test_structured_leaves_use_their_keys(self):
        """Test that nested keys pick their own strategy."""
        original = {"owner": {"full_name": "Amina Benali", "phone": "0551234567"}, "floor": 3}

        result = self._anonymize("lofts", "details", original)

        owner = result.anonymized_value["owner"]
        assert owner["full_name"] != "Amina Benali"
        assert owner["phone"][:3] in ("055", "056", "057", "066", "067", "077", "078")
        assert isinstance(result.anonymized_value["floor"], int)

    def test_email_list_is_replaced(self):
        """Test that email-shaped entries of a generic list become emails."""
        original = ["amina@gmail.com", "karim@yahoo.fr"]

        result = self._anonymize("users", "contacts", original)

        value = result.anonymized_value
        assert isinstance(value, list)
        assert len(value) == 2
        assert all(EMAIL_PATTERN.match(v) for v in value)
        assert not set(value) & set(original)

    def test_date_keeps_representation(self):
        """Test that dates keep their type and string shape."""
        as_date = self._anonymize("reservations", "check_in_date", datetime.date(2024, 5, 1))
        as_text = self._anonymize("reservations", "check_in_date", "2024-05-01")

        assert isinstance(as_date.anonymized_value, datetime.date)
        assert re.match(r"^\d{4}-\d{2}-\d{2}$", as_text.anonymized_value)

    def test_generic_preserves_type(self):
        """Test type-preserving substitution."""
        number = self._anonymize("lofts", "floor", 12)
        flag = self._anonymize("lofts", "is_active", True)

        assert isinstance(number.anonymized_value, int)
        assert isinstance(flag.anonymized_value, bool)

    def test_custom_generator(self):
        """Test rule-supplied generators."""
        rule = FieldConfig("users", "national_id", AnonymizationType.CUSTOM, lambda v: "X" * len(v))
        result = self.engine.anonymize_value(
            "12345", rule, _context("users", "national_id", "12345")
        )

        assert result.anonymized_value == "XXXXX"
        assert result.error is None


class TestRecoveredFailures:
    """Tests for failures that fall back to generic substitution."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = CoreAnonymizationEngine(AnonymizationConfig(seed=11))

    def test_failing_custom_generator_is_recovered(self):
        """Test that a raising generator yields a fallback and an error."""

        def broken(value):
            raise RuntimeError("boom")

        rule = FieldConfig("users", "national_id", AnonymizationType.CUSTOM, broken)
        result = self.engine.anonymize_value(
            "ABC123", rule, _context("users", "national_id", "ABC123")
        )

        assert isinstance(result.error, FieldTransformError)
        assert result.recovered
        assert isinstance(result.error.cause, RuntimeError)
        assert isinstance(result.anonymized_value, str)
        assert result.anonymization_type == AnonymizationType.GENERIC

    def test_custom_without_generator_is_recovered(self):
        """Test that CUSTOM without a generator is a recovered failure."""
        rule = FieldConfig("users", "national_id", AnonymizationType.CUSTOM)
        result = self.engine.anonymize_value(
            "ABC123", rule, _context("users", "national_id", "ABC123")
        )

        assert result.error is not None
        assert "custom_generator" in result.error.message

    def test_non_numeric_financial_is_recovered(self):
        """Test a financial rule applied to text."""
        rule = FieldConfig("lofts", "price", AnonymizationType.FINANCIAL)
        result = self.engine.anonymize_value("n/a", rule, _context("lofts", "price", "n/a"))

        assert result.error is not None
        assert result.error.column_name == "price"
        assert isinstance(result.anonymized_value, str)


class TestAnonymizeBatch:
    """Tests for anonymize_batch."""

    def test_batch_copies_rows(self):
        """Test that input rows are left untouched."""
        engine = CoreAnonymizationEngine(AnonymizationConfig(seed=5))
        rows = [
            {"id": 1, "name": "Amina Benali", "email": "amina@gmail.com"},
            {"id": 2, "name": "Karim Haddad", "email": None},
        ]
        configs = [
            FieldConfig("users", "name", AnonymizationType.NAME),
            FieldConfig("users", "email", AnonymizationType.EMAIL),
        ]

        result = engine.anonymize_batch(rows, configs, "users")

        assert rows[0]["name"] == "Amina Benali"
        assert result.total_records == 2
        assert result.anonymized_records == 2
        assert result.anonymized_data[0]["id"] == 1
        assert result.anonymized_data[0]["name"] != "Amina Benali"
        assert result.anonymized_data[1]["email"] is None
        assert result.anonymized_fields == ["name", "email"]
        assert result.errors == []
