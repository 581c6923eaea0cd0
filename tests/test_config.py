"""
Tests for configuration and data models.

This module contains tests for AnonymizationConfig, FinancialRange,
ForeignKeyRelationship and RelationalTable.
"""

import pytest

from relational_anonymizer import (
    AnonymizationConfig,
    AnonymizationType,
    ConfigurationError,
    FieldConfig,
    FinancialRange,
    ForeignKeyRelationship,
    RelationalTable,
    RelationshipType,
)


class TestFinancialRange:
    """Tests for FinancialRange."""

    def test_contains(self):
        """Test inclusive bounds."""
        bounds = FinancialRange(100, 200)

        assert bounds.contains(100)
        assert bounds.contains(200)
        assert not bounds.contains(201)

    def test_min_greater_than_max_raises_error(self):
        """Test that inverted bounds are rejected."""
        with pytest.raises(ConfigurationError, match="greater than max"):
            FinancialRange(500, 100)

    def test_non_numeric_bound_raises_error(self):
        """Test that non-numeric bounds are rejected."""
        with pytest.raises(ConfigurationError, match="must be numeric"):
            FinancialRange("100", 200)

    def test_coerce_accepts_dict_and_pair(self):
        """Test the accepted range shapes."""
        assert FinancialRange.coerce({"min": 1, "max": 2}) == FinancialRange(1, 2)
        assert FinancialRange.coerce((1, 2)) == FinancialRange(1, 2)

    def test_coerce_missing_key_raises_error(self):
        """Test that a dict without max is rejected."""
        with pytest.raises(ConfigurationError, match="'min' and 'max'"):
            FinancialRange.coerce({"min": 1})


class TestAnonymizationConfig:
    """Tests for AnonymizationConfig."""

    def test_defaults(self):
        """Test default configuration."""
        config = AnonymizationConfig()

        assert config.preserve_relationships is True
        assert config.generate_realistic_data is True
        assert config.exclude_tables == frozenset()
        assert config.exclude_columns == frozenset()
        assert config.max_workers == 1

    def test_financial_ranges_are_normalized(self):
        """Test that dict ranges become FinancialRange objects."""
        config = AnonymizationConfig(financial_ranges={"price": {"min": 10, "max": 20}})

        assert config.financial_ranges["price"] == FinancialRange(10, 20)

    def test_malformed_range_fails_at_construction(self):
        """Test that min > max fails before any run starts."""
        with pytest.raises(ConfigurationError):
            AnonymizationConfig(financial_ranges={"price": {"min": 50, "max": 10}})

    def test_find_financial_range_first_match_wins(self):
        """Test case-insensitive substring match in declaration order."""
        config = AnonymizationConfig(
            financial_ranges={
                "amount": (1, 10),
                "total": (100, 1000),
            }
        )

        assert config.find_financial_range("Total_Amount") == FinancialRange(1, 10)
        assert config.find_financial_range("grand_total") == FinancialRange(100, 1000)
        assert config.find_financial_range("price") is None

    def test_bare_string_exclusion_is_not_split(self):
        """Test that exclude_columns='id' means the column id."""
        config = AnonymizationConfig(exclude_columns="id")

        assert config.exclude_columns == frozenset({"id"})
        assert config.is_column_excluded("id")
        assert not config.is_column_excluded("i")

    def test_invalid_flag_type_raises_error(self):
        """Test that flags must be booleans."""
        with pytest.raises(TypeError):
            AnonymizationConfig(preserve_relationships="yes")

    def test_invalid_max_workers_raises_error(self):
        """Test that max_workers must be positive."""
        with pytest.raises(ConfigurationError):
            AnonymizationConfig(max_workers=0)

    def test_config_is_immutable(self):
        """Test that the config cannot change during a run."""
        config = AnonymizationConfig()

        with pytest.raises(AttributeError):
            config.preserve_relationships = False

        with pytest.raises(TypeError):
            config.financial_ranges["price"] = FinancialRange(1, 2)

    def test_from_dict_accepts_camel_case(self):
        """Test loading the booking platform's configuration keys."""
        config = AnonymizationConfig.from_dict(
            {
                "preserveRelationships": True,
                "generateRealisticData": False,
                "financialRanges": {"price_per_night": {"min": 3000, "max": 25000}},
                "excludeTables": ["audit_logs"],
                "excludeColumns": ["id", "created_at"],
            }
        )

        assert config.generate_realistic_data is False
        assert config.is_table_excluded("audit_logs")
        assert config.exclude_columns == frozenset({"id", "created_at"})
        assert config.find_financial_range("price_per_night") == FinancialRange(3000, 25000)

    def test_from_dict_unknown_key_raises_error(self):
        """Test that typos in configuration keys are reported."""
        with pytest.raises(ConfigurationError, match="Unknown configuration key"):
            AnonymizationConfig.from_dict({"excludeTable": ["users"]})

    def test_to_dict_round_trip(self):
        """Test that to_dict output is accepted by from_dict."""
        config = AnonymizationConfig(
            financial_ranges={"fee": (10, 20)},
            exclude_tables={"teams"},
            seed=7,
        )

        restored = AnonymizationConfig.from_dict(config.to_dict())

        assert restored == config

    def test_get_custom_rule(self):
        """Test looking up a per-column rule."""
        rule = FieldConfig("users", "national_id", AnonymizationType.CUSTOM, lambda v: "X")
        config = AnonymizationConfig(custom_rules=[rule])

        assert config.get_custom_rule("users", "national_id") is rule
        assert config.get_custom_rule("lofts", "national_id") is None


class TestForeignKeyRelationship:
    """Tests for ForeignKeyRelationship."""

    def test_string_type_is_normalized(self):
        """Test that relationship types may be given as strings."""
        rel = ForeignKeyRelationship("lofts", "owner_id", "users", "id", "one-to-one")

        assert rel.relationship_type == RelationshipType.ONE_TO_ONE

    def test_invalid_type_raises_error(self):
        """Test that unknown cardinalities are rejected."""
        with pytest.raises(ValueError, match="Invalid relationship type"):
            ForeignKeyRelationship("lofts", "owner_id", "users", "id", "some-to-some")

    def test_from_dict_camel_case(self):
        """Test building a relationship from camelCase keys."""
        rel = ForeignKeyRelationship.from_dict(
            {
                "sourceTable": "reservations",
                "sourceColumn": "loft_id",
                "targetTable": "lofts",
                "targetColumn": "id",
                "relationshipType": "many-to-one",
            }
        )

        assert rel.to_qualified_names() == ("reservations.loft_id", "lofts.id")
        assert rel.relationship_type == RelationshipType.MANY_TO_ONE

    def test_self_reference(self):
        """Test detection of self-referencing relationships."""
        rel = ForeignKeyRelationship("employees", "manager_id", "employees", "id")

        assert rel.is_self_reference

    def test_relationships_are_hashable(self):
        """Test that identical declarations compare equal."""
        a = ForeignKeyRelationship("lofts", "owner_id", "users", "id")
        b = ForeignKeyRelationship("lofts", "owner_id", "users", "id")

        assert a == b
        assert len({a, b}) == 1


class TestRelationalTable:
    """Tests for RelationalTable."""

    def test_get_columns_is_ordered_union(self):
        """Test that columns of sparse rows are all reported."""
        table = RelationalTable(
            "users",
            rows=[{"id": 1, "name": "A"}, {"id": 2, "email": "b@c.dz"}],
        )

        assert table.get_columns() == ["id", "name", "email"]

    def test_get_column_values_skips_missing(self):
        """Test that rows without the column are skipped."""
        table = RelationalTable("users", rows=[{"id": 1, "name": "A"}, {"id": 2}])

        assert table.get_column_values("name") == ["A"]

    def test_primary_key_string_is_wrapped(self):
        """Test that a single primary key column may be given as a string."""
        table = RelationalTable("lofts", rows=[{"loft_id": 1}], primary_key="loft_id")

        assert table.primary_key == ("loft_id",)
        assert table.get_primary_key_columns() == ["loft_id"]

    def test_from_dict_accepts_data_key(self):
        """Test loading the loader's table shape."""
        table = RelationalTable.from_dict(
            {
                "tableName": "lofts",
                "data": [{"id": 1, "owner_id": 5}],
                "relationships": [
                    {
                        "sourceTable": "lofts",
                        "sourceColumn": "owner_id",
                        "targetTable": "users",
                        "targetColumn": "id",
                    }
                ],
            }
        )

        assert table.table_name == "lofts"
        assert table.rows == [{"id": 1, "owner_id": 5}]
        assert table.relationships[0].target_table == "users"

    def test_empty_table_name_raises_error(self):
        """Test that tables must be named."""
        with pytest.raises(ValueError):
            RelationalTable("")
