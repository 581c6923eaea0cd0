"""
Tests for TableDependencyGraph.
"""

import pytest

from relational_anonymizer import (
    ConfigurationError,
    ForeignKeyRelationship,
    RelationalTable,
    TableDependencyGraph,
)


def _tables(*names):
    return [RelationalTable(name, rows=[{"id": 1}]) for name in names]


class TestProcessingOrder:
    """Tests for ordering tables parents first."""

    def test_parents_before_children(self):
        """Test that referenced tables come first."""
        tables = _tables("reservations", "lofts", "users")
        graph = TableDependencyGraph.from_tables(
            tables,
            [
                ForeignKeyRelationship("reservations", "loft_id", "lofts", "id"),
                ForeignKeyRelationship("reservations", "user_id", "users", "id"),
                ForeignKeyRelationship("lofts", "owner_id", "users", "id"),
            ],
        )

        order = graph.processing_order()

        assert order.index("users") < order.index("lofts") < order.index("reservations")

    def test_unrelated_tables_keep_input_order(self):
        """Test that ties are broken by input order."""
        graph = TableDependencyGraph.from_tables(_tables("c", "a", "b"))

        assert graph.processing_order() == ["c", "a", "b"]

    def test_relationships_read_from_tables(self):
        """Test that declarations on tables are used by default."""
        users = RelationalTable("users", rows=[{"id": 1}])
        lofts = RelationalTable(
            "lofts",
            rows=[{"id": 1, "owner_id": 1}],
            relationships=[ForeignKeyRelationship("lofts", "owner_id", "users", "id")],
        )

        graph = TableDependencyGraph.from_tables([lofts, users])

        assert graph.processing_order() == ["users", "lofts"]
        assert graph.get_dependencies("lofts") == {"users"}
        assert graph.get_dependents("users") == {"lofts"}

    def test_self_reference_is_allowed(self):
        """Test that a table may reference itself."""
        graph = TableDependencyGraph.from_tables(
            _tables("employees"),
            [ForeignKeyRelationship("employees", "manager_id", "employees", "id")],
        )

        assert graph.processing_order() == ["employees"]
        assert len(graph.self_references) == 1
        assert graph.find_cycle() is None


class TestValidation:
    """Tests for cycle and conflict detection."""

    def test_cycle_raises_configuration_error(self):
        """Test that a two-table cycle is rejected."""
        graph = TableDependencyGraph.from_tables(
            _tables("users", "lofts"),
            [
                ForeignKeyRelationship("lofts", "owner_id", "users", "id"),
                ForeignKeyRelationship("users", "favorite_loft_id", "lofts", "id"),
            ],
        )

        with pytest.raises(ConfigurationError) as exc_info:
            graph.processing_order()

        assert set(exc_info.value.cycle) == {"users", "lofts"}
        assert "Cycle:" in exc_info.value.message

    def test_conflicting_targets_raise_configuration_error(self):
        """Test that one column cannot reference two targets."""
        with pytest.raises(ConfigurationError, match="declared against both"):
            TableDependencyGraph.from_tables(
                _tables("users", "lofts", "teams"),
                [
                    ForeignKeyRelationship("lofts", "owner_id", "users", "id"),
                    ForeignKeyRelationship("lofts", "owner_id", "teams", "id"),
                ],
            )

    def test_duplicate_declarations_are_ignored(self):
        """Test that identical declarations collapse to one."""
        rel = ForeignKeyRelationship("lofts", "owner_id", "users", "id")
        graph = TableDependencyGraph.from_tables(_tables("users", "lofts"), [rel, rel])

        assert graph.get_relationships() == [rel]
        assert graph.get_statistics()["total_relationships"] == 1


class TestExport:
    """Tests for graph export and statistics."""

    def test_to_dict(self):
        """Test exporting edges with their relationships."""
        graph = TableDependencyGraph.from_tables(
            _tables("users", "lofts"),
            [ForeignKeyRelationship("lofts", "owner_id", "users", "id")],
        )

        data = graph.to_dict()

        assert data["nodes"] == ["users", "lofts"]
        assert data["edges"][0]["source"] == "users"
        assert data["edges"][0]["target"] == "lofts"
        assert data["edges"][0]["relationships"][0]["source_column"] == "owner_id"

    def test_statistics_depth(self):
        """Test the longest dependency chain."""
        graph = TableDependencyGraph.from_tables(
            _tables("users", "lofts", "reservations"),
            [
                ForeignKeyRelationship("lofts", "owner_id", "users", "id"),
                ForeignKeyRelationship("reservations", "loft_id", "lofts", "id"),
            ],
        )

        stats = graph.get_statistics()

        assert stats["total_tables"] == 3
        assert stats["total_edges"] == 2
        assert stats["max_depth"] == 2
