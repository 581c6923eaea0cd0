"""
Table dependency graph for anonymization ordering.

This module defines the TableDependencyGraph class, which uses networkx to
build a directed graph of tables from foreign key declarations. Edges point
from the referenced (parent) table to the referencing (child) table, so a
topological order lists parents first.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import networkx as nx

from relational_anonymizer.exceptions import ConfigurationError
from relational_anonymizer.models.relational_table import (
    ForeignKeyRelationship,
    RelationalTable,
)


class TableDependencyGraph:
    """Dependency graph between tables.

    Nodes are table names. An edge ``target -> source`` carries the list of
    relationships through which ``source`` references ``target``.
    Self-references are kept out of the graph: the identity pass creates a
    table's mappings before its own foreign keys are rewritten, so they never
    constrain the order.

    Attributes:
        graph: networkx DiGraph object representing the dependencies.
        self_references: Relationships whose source and target table match.

    Example:
        >>> graph = TableDependencyGraph.from_tables(tables)
        >>> graph.processing_order()
        ['users', 'lofts', 'reservations']
    """

    def __init__(self) -> None:
        """Initialize an empty TableDependencyGraph."""
        self.graph = nx.DiGraph()
        self.self_references: list[ForeignKeyRelationship] = []
        self._positions: dict[str, int] = {}
        self._by_source_column: dict[tuple[str, str], ForeignKeyRelationship] = {}

    @classmethod
    def from_tables(
        cls,
        tables: Sequence[RelationalTable],
        relationships: Optional[Iterable[ForeignKeyRelationship]] = None,
    ) -> "TableDependencyGraph":
        """Build a graph from tables and their declared relationships.

        Args:
            tables: Tables of the dataset, in input order.
            relationships: Relationships to add. Defaults to the relationships
                declared on the tables.

        Returns:
            A populated TableDependencyGraph.

        Raises:
            ConfigurationError: If a foreign key column is declared against
                two different targets.
        """
        graph = cls()
        for table in tables:
            graph.add_table(table.table_name)

        if relationships is None:
            relationships = [rel for table in tables for rel in table.relationships]

        for relationship in relationships:
            graph.add_relationship(relationship)
        return graph

    def add_table(self, table_name: str) -> None:
        if table_name not in self._positions:
            self._positions[table_name] = len(self._positions)
        self.graph.add_node(table_name)

    def add_relationship(self, relationship: ForeignKeyRelationship) -> None:
        """Add a relationship as a parent -> child edge.

        Identical duplicate declarations are ignored.

        Raises:
            ConfigurationError: If the same source column already references
                a different target.
        """
        key = (relationship.source_table, relationship.source_column)
        existing = self._by_source_column.get(key)
        if existing is not None:
            if (existing.target_table, existing.target_column) != (
                relationship.target_table,
                relationship.target_column,
            ):
                source, _ = relationship.to_qualified_names()
                raise ConfigurationError(
                    f"Foreign key {source} is declared against both "
                    f"{existing.to_qualified_names()[1]} and "
                    f"{relationship.to_qualified_names()[1]}",
                    field="relationships",
                )
            return
        self._by_source_column[key] = relationship

        self.add_table(relationship.target_table)
        self.add_table(relationship.source_table)

        if relationship.is_self_reference:
            self.self_references.append(relationship)
            return

        if self.graph.has_edge(relationship.target_table, relationship.source_table):
            self.graph.edges[relationship.target_table, relationship.source_table][
                "relationships"
            ].append(relationship)
        else:
            self.graph.add_edge(
                relationship.target_table,
                relationship.source_table,
                relationships=[relationship],
            )

    def get_relationships(self) -> list[ForeignKeyRelationship]:
        """Return every distinct relationship, in declaration order."""
        return list(self._by_source_column.values())

    def find_cycle(self) -> Optional[list[str]]:
        """Return the tables of one dependency cycle, or None.

        Example:
            >>> graph.find_cycle()
            ['lofts', 'users']
        """
        try:
            edges = nx.find_cycle(self.graph, orientation="original")
        except nx.NetworkXNoCycle:
            return None
        return [edge[0] for edge in edges]

    def validate(self) -> None:
        """Raise ConfigurationError if no valid processing order exists."""
        cycle = self.find_cycle()
        if cycle:
            raise ConfigurationError(
                "Relationship cycle detected between tables "
                f"{', '.join(sorted(set(cycle)))}",
                field="relationships",
                cycle=cycle,
            )

    def processing_order(self) -> list[str]:
        """Return table names with every referenced table before its referrers.

        Ties are broken by the order in which tables were added, so the
        order is stable for a given input.

        Raises:
            ConfigurationError: If the graph contains a cycle.
        """
        self.validate()
        return list(
            nx.lexicographical_topological_sort(
                self.graph, key=lambda name: self._positions[name]
            )
        )

    def get_dependencies(self, table_name: str) -> set[str]:
        """Tables that ``table_name`` references (directly)."""
        if table_name not in self.graph:
            return set()
        return set(self.graph.predecessors(table_name))

    def get_dependents(self, table_name: str) -> set[str]:
        """Tables that reference ``table_name``, directly or transitively."""
        if table_name not in self.graph:
            return set()
        return nx.descendants(self.graph, table_name)

    def to_dict(self) -> dict[str, list[Any]]:
        """Export graph to dictionary format suitable for JSON."""
        return {
            "nodes": list(self.graph.nodes),
            "edges": [
                {
                    "source": u,
                    "target": v,
                    "relationships": [rel.to_dict() for rel in data["relationships"]],
                }
                for u, v, data in self.graph.edges(data=True)
            ],
            "self_references": [rel.to_dict() for rel in self.self_references],
        }

    def get_statistics(self) -> dict[str, int]:
        """Get graph statistics (tables, edges, longest dependency chain)."""
        max_depth = 0
        if self.graph.number_of_nodes() and nx.is_directed_acyclic_graph(self.graph):
            max_depth = nx.dag_longest_path_length(self.graph)

        return {
            "total_tables": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "total_relationships": len(self._by_source_column),
            "self_references": len(self.self_references),
            "max_depth": max_depth,
        }
