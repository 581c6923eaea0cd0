"""
Relational table model.

This module defines the RelationalTable and ForeignKeyRelationship classes,
which together describe the in-memory snapshot handed to the anonymizer by
the data-reading collaborator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RelationshipType(str, Enum):
    """Cardinality of a foreign key relationship."""

    MANY_TO_ONE = "many-to-one"
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"

    @classmethod
    def values(cls) -> list[str]:
        """Return a list of all possible relationship type values."""
        return [member.value for member in cls]


@dataclass(frozen=True)
class ForeignKeyRelationship:
    """Foreign key declaration between two table columns.

    After anonymization, every value of ``source_table.source_column`` must
    equal the anonymized counterpart of the value it referenced in
    ``target_table.target_column``.

    Attributes:
        source_table: Table holding the foreign key.
        source_column: Foreign key column.
        target_table: Referenced table.
        target_column: Referenced identity column.
        relationship_type: Cardinality of the relationship.

    Example:
        >>> rel = ForeignKeyRelationship(
        ...     source_table="reservations",
        ...     source_column="loft_id",
        ...     target_table="lofts",
        ...     target_column="id",
        ... )
        >>> rel.to_qualified_names()
        ('reservations.loft_id', 'lofts.id')
    """

    source_table: str
    source_column: str
    target_table: str
    target_column: str
    relationship_type: RelationshipType = RelationshipType.MANY_TO_ONE

    def __post_init__(self) -> None:
        """Validate and normalize the relationship type."""
        if not isinstance(self.relationship_type, RelationshipType):
            try:
                normalized = RelationshipType(self.relationship_type)
            except ValueError:
                raise ValueError(
                    f"Invalid relationship type: {self.relationship_type!r}. "
                    f"Must be one of {RelationshipType.values()}"
                ) from None
            object.__setattr__(self, "relationship_type", normalized)

    @property
    def is_self_reference(self) -> bool:
        """Whether the relationship points back at its own table."""
        return self.source_table == self.target_table

    def to_qualified_names(self) -> Tuple[str, str]:
        """Return ``(source, target)`` as ``table.column`` strings."""
        return (
            f"{self.source_table}.{self.source_column}",
            f"{self.target_table}.{self.target_column}",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "source_table": self.source_table,
            "source_column": self.source_column,
            "target_table": self.target_table,
            "target_column": self.target_column,
            "relationship_type": self.relationship_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForeignKeyRelationship":
        """Build a relationship from snake_case or camelCase keys.

        Args:
            data: Dictionary with source/target table and column names.

        Returns:
            ForeignKeyRelationship instance.
        """
        return cls(
            source_table=data.get("source_table", data.get("sourceTable")),
            source_column=data.get("source_column", data.get("sourceColumn")),
            target_table=data.get("target_table", data.get("targetTable")),
            target_column=data.get("target_column", data.get("targetColumn")),
            relationship_type=data.get(
                "relationship_type",
                data.get("relationshipType", RelationshipType.MANY_TO_ONE),
            ),
        )


@dataclass
class RelationalTable:
    """One table of the relational snapshot.

    Rows are mutated in place by the orchestrator: each row dictionary keeps
    its identity and key order, only values change.

    Attributes:
        table_name: Table name, unique within a dataset.
        rows: Ordered row records (column name -> value).
        relationships: Foreign keys declared from this table.
        primary_key: Identity columns of this table. Defaults to ``("id",)``.

    Example:
        >>> users = RelationalTable(
        ...     table_name="users",
        ...     rows=[{"id": 1, "email": "a@b.dz"}],
        ... )
        >>> users.get_columns()
        ['id', 'email']
    """

    table_name: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    relationships: List[ForeignKeyRelationship] = field(default_factory=list)
    primary_key: Tuple[str, ...] = ("id",)

    def __post_init__(self) -> None:
        if not self.table_name or not isinstance(self.table_name, str):
            raise ValueError("table_name must be a non-empty string")
        if isinstance(self.primary_key, str):
            self.primary_key = (self.primary_key,)
        else:
            self.primary_key = tuple(self.primary_key)

    def get_columns(self) -> List[str]:
        """Return the ordered union of column names across all rows."""
        columns: List[str] = []
        seen = set()
        for row in self.rows:
            for column in row:
                if column not in seen:
                    seen.add(column)
                    columns.append(column)
        return columns

    def has_column(self, name: str) -> bool:
        return any(name in row for row in self.rows)

    def get_column_values(self, column: str) -> List[Any]:
        """Return the values of one column, skipping rows that lack it."""
        return [row[column] for row in self.rows if column in row]

    def get_primary_key_columns(self) -> List[str]:
        """Return primary key columns that actually appear in the rows."""
        return [column for column in self.primary_key if self.has_column(column)]

    def get_sample_value(self, column: str) -> Optional[Any]:
        """Return the first non-null value of a column, if any."""
        for row in self.rows:
            value = row.get(column)
            if value is not None:
                return value
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "rows": self.rows,
            "relationships": [rel.to_dict() for rel in self.relationships],
            "primary_key": list(self.primary_key),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelationalTable":
        """Build a table from the dictionary shape used by loaders.

        Accepts both ``rows`` and the loader's ``data`` key, and
        both snake_case and camelCase names.
        """
        rows = data.get("rows", data.get("data", []))
        return cls(
            table_name=data.get("table_name", data.get("tableName")),
            rows=list(rows),
            relationships=[
                rel
                if isinstance(rel, ForeignKeyRelationship)
                else ForeignKeyRelationship.from_dict(rel)
                for rel in data.get("relationships", [])
            ],
            primary_key=data.get("primary_key", data.get("primaryKey", ("id",))),
        )
