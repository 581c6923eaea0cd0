"""
Dependency graph module.

This package contains the graph of tables built from foreign key
declarations, used to validate relationships and order the run.
"""

from relational_anonymizer.graph.table_dependency_graph import TableDependencyGraph

__all__ = [
    "TableDependencyGraph",
]
