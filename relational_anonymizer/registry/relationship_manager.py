"""
Relationship manager for preserving referential integrity.

This module defines the RelationshipManager class, which owns the foreign key
declarations of a run and the per-(table, column) identity mappings used to
rewrite references consistently.
"""

import random
import threading
import uuid
import warnings
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from relational_anonymizer.exceptions import DanglingReferenceError
from relational_anonymizer.models.relational_table import (
    ForeignKeyRelationship,
    RelationalTable,
)
from relational_anonymizer.models.result import IntegrityReport, RelationshipStats
from relational_anonymizer.utils.text import digit_count, is_uuid

MappingKey = Tuple[str, str]

# Attempts at drawing a fresh identifier before widening the search space
_MAX_DRAWS = 64


class RelationshipManager:
    """Relationship manager: owns foreign keys and identity mappings.

    Responsibilities:
    1. Register foreign key declarations for a run
    2. Create identity mappings for identity-bearing columns
    3. Look up mapped identifiers when rewriting foreign keys
    4. Validate referential integrity of the output

    ``create_id_mapping`` and ``lookup`` on the same (table, column) key are
    serialized by a per-key lock; different keys proceed in parallel.

    Usage:
        manager = RelationshipManager()
        manager.register_relationships(relationships)

        # Identity pass
        manager.create_id_mapping("lofts", "id", [1, 2])

        # Foreign key rewrite
        new_loft_id = manager.lookup("lofts", "id", 1)
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        """Initialize a RelationshipManager.

        Args:
            seed: Optional seed for reproducible identifiers.
        """
        self.relationships: List[ForeignKeyRelationship] = []
        self._id_mappings: Dict[MappingKey, Dict[Any, Any]] = {}
        self._used_values: Dict[MappingKey, set] = {}
        self._key_locks: Dict[MappingKey, threading.Lock] = {}
        self._guard = threading.Lock()
        self._random = random.Random(seed)

    def register_relationships(
        self, relationships: Iterable[ForeignKeyRelationship]
    ) -> None:
        """Register foreign key relationships.

        Identical declarations are only kept once.

        Args:
            relationships: Relationships to add to the known set.
        """
        with self._guard:
            for relationship in relationships:
                if relationship not in self.relationships:
                    self.relationships.append(relationship)

    def get_relationships(self) -> List[ForeignKeyRelationship]:
        with self._guard:
            return list(self.relationships)

    def get_relationship(
        self, source_table: str, source_column: str
    ) -> Optional[ForeignKeyRelationship]:
        """Return the relationship declared for a foreign key column."""
        with self._guard:
            for relationship in self.relationships:
                if (
                    relationship.source_table == source_table
                    and relationship.source_column == source_column
                ):
                    return relationship
        return None

    def get_relationships_from(self, source_table: str) -> List[ForeignKeyRelationship]:
        with self._guard:
            return [r for r in self.relationships if r.source_table == source_table]

    def get_relationships_to(self, target_table: str) -> List[ForeignKeyRelationship]:
        with self._guard:
            return [r for r in self.relationships if r.target_table == target_table]

    def create_id_mapping(
        self, table_name: str, column_name: str, original_values: Sequence[Any]
    ) -> Dict[Any, Any]:
        """Create (or extend) the identity mapping of a column.

        Every distinct non-null value that is not mapped yet receives a new
        identifier of the same format. Values that are already mapped keep
        their identifier, so repeated and overlapping calls agree.

        Args:
            table_name: Table owning the identity column.
            column_name: Identity column.
            original_values: Original values of the column.

        Returns:
            Copy of the full mapping for the column, including earlier
            entries.

        Example:
            >>> manager = RelationshipManager()
            >>> mapping = manager.create_id_mapping("users", "id", [1, 2, None, 2])
            >>> sorted(mapping)
            [1, 2]
        """
        key = (table_name, column_name)
        with self._lock_for(key):
            mapping = self._id_mappings.setdefault(key, {})
            used = self._used_values.setdefault(key, set())
            for original in original_values:
                if original is None or not isinstance(original, Hashable):
                    continue
                if original in mapping:
                    continue
                anonymized = self._generate_identifier(original, used)
                mapping[original] = anonymized
                used.add(anonymized)
            return dict(mapping)

    def lookup(self, table_name: str, column_name: str, original_value: Any) -> Any:
        """Return the anonymized identifier assigned to an original value.

        No mapping is ever created here, so a reference can only point at an
        identifier that the target table has actually been assigned.

        Raises:
            DanglingReferenceError: If the value has no mapping.
        """
        key = (table_name, column_name)
        with self._lock_for(key):
            mapping = self._id_mappings.get(key)
            if mapping is not None:
                try:
                    return mapping[original_value]
                except (KeyError, TypeError):
                    pass
        raise DanglingReferenceError(
            f"No identity mapping for {table_name}.{column_name} = {original_value!r}",
            table_name=table_name,
            column_name=column_name,
            value=original_value,
        )

    def get_anonymized_reference(
        self, original_value: Any, source_table: str, source_column: str
    ) -> Any:
        """Resolve a foreign key value through its declared relationship.

        ``None`` is returned unchanged.

        Raises:
            KeyError: If no relationship is declared for the column.
            DanglingReferenceError: If the referenced value has no mapping.
        """
        if original_value is None:
            return None

        relationship = self.get_relationship(source_table, source_column)
        if relationship is None:
            raise KeyError(
                f"No relationship declared for {source_table}.{source_column}"
            )

        try:
            return self.lookup(
                relationship.target_table, relationship.target_column, original_value
            )
        except DanglingReferenceError as e:
            raise DanglingReferenceError(
                e.message,
                table_name=relationship.target_table,
                column_name=relationship.target_column,
                value=original_value,
                source_table=source_table,
                source_column=source_column,
            ) from None

    def has_mapping(self, table_name: str, column_name: str) -> bool:
        with self._guard:
            return (table_name, column_name) in self._id_mappings

    def get_mapping(self, table_name: str, column_name: str) -> Dict[Any, Any]:
        """Return a copy of a column's mapping (empty if none exists)."""
        key = (table_name, column_name)
        with self._lock_for(key):
            return dict(self._id_mappings.get(key, {}))

    def validate_referential_integrity(
        self, tables: Sequence[RelationalTable]
    ) -> IntegrityReport:
        """Check that every foreign key value exists in its target column.

        Args:
            tables: Tables after anonymization.

        Returns:
            IntegrityReport listing every violation.
        """
        report = IntegrityReport()
        by_name = {table.table_name: table for table in tables}

        for relationship in self.get_relationships():
            source = by_name.get(relationship.source_table)
            if source is None:
                continue

            target = by_name.get(relationship.target_table)
            if target is None:
                report.errors.append(
                    f"Target table {relationship.target_table} not found for "
                    f"relationship validation"
                )
                continue

            target_values = {
                value
                for value in target.get_column_values(relationship.target_column)
                if value is not None
            }
            for row_index, row in enumerate(source.rows):
                value = row.get(relationship.source_column)
                if value is not None and value not in target_values:
                    report.errors.append(
                        "Referential integrity violation: "
                        f"{relationship.source_table}.{relationship.source_column} "
                        f"(row {row_index}) references non-existent "
                        f"{relationship.target_table}.{relationship.target_column} "
                        f"= {value!r}"
                    )

        return report

    def get_statistics(self) -> RelationshipStats:
        """Get relationship and mapping statistics."""
        with self._guard:
            mappings_by_table: Dict[str, int] = {}
            mapped_values = 0
            for (table_name, _), mapping in self._id_mappings.items():
                mappings_by_table[table_name] = (
                    mappings_by_table.get(table_name, 0) + len(mapping)
                )
                mapped_values += len(mapping)

            return RelationshipStats(
                total_relationships=len(self.relationships),
                id_mappings_created=len(self._id_mappings),
                mapped_values=mapped_values,
                mappings_by_table=mappings_by_table,
            )

    def reset(self) -> None:
        """Clear all mappings and relationships (for a new run)."""
        with self._guard:
            self.relationships.clear()
            self._id_mappings.clear()
            self._used_values.clear()
            self._key_locks.clear()

    def export_mappings(self) -> Dict[str, Dict[Any, Any]]:
        """Export mappings as ``{"table.column": {original: anonymized}}``."""
        with self._guard:
            return {
                f"{table_name}.{column_name}": dict(mapping)
                for (table_name, column_name), mapping in self._id_mappings.items()
            }

    def import_mappings(self, mappings: Dict[str, Dict[Any, Any]]) -> None:
        """Import mappings previously produced by ``export_mappings``.

        Args:
            mappings: ``{"table.column": {original: anonymized}}``.

        Raises:
            ValueError: If a key is not of the form ``table.column``.
        """
        for qualified_name, mapping in mappings.items():
            table_name, sep, column_name = qualified_name.rpartition(".")
            if not sep or not table_name or not column_name:
                raise ValueError(
                    f"Invalid mapping key {qualified_name!r}, expected 'table.column'"
                )
            key = (table_name, column_name)
            with self._lock_for(key):
                if key in self._id_mappings:
                    warnings.warn(
                        f"Identity mapping for '{qualified_name}' is being replaced "
                        f"by an imported mapping.",
                        UserWarning,
                    )
                self._id_mappings[key] = dict(mapping)
                self._used_values[key] = set(mapping.values())

    def _lock_for(self, key: MappingKey) -> threading.Lock:
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _generate_identifier(self, original: Any, used: set) -> Any:
        """Generate a new identifier in the same format as ``original``.

        Integers keep their digit count, UUID strings become fresh UUIDs,
        digit strings keep their length, other strings become ``anon_<hex>``.
        The result differs from the original and from every identifier
        already assigned in the same mapping.
        """
        if isinstance(original, bool):
            # bool is an int subclass but carries no identity
            return original

        if isinstance(original, int):
            digits = digit_count(original)
            while True:
                for _ in range(_MAX_DRAWS):
                    low = 0 if digits == 1 else 10 ** (digits - 1)
                    candidate = self._random.randint(low, 10**digits - 1)
                    if original < 0:
                        candidate = -candidate
                    if candidate != original and candidate not in used:
                        return candidate
                # Space exhausted at this width
                digits += 1

        if isinstance(original, uuid.UUID):
            return self._fresh(
                lambda: uuid.UUID(int=self._random.getrandbits(128), version=4),
                original,
                used,
            )

        if isinstance(original, str):
            if is_uuid(original):
                def draw() -> str:
                    value = str(uuid.UUID(int=self._random.getrandbits(128), version=4))
                    return value.upper() if original.isupper() else value

                return self._fresh(draw, original, used)

            if original.isdigit():
                length = len(original)
                while True:
                    for _ in range(_MAX_DRAWS):
                        candidate = "".join(
                            self._random.choice("0123456789") for _ in range(length)
                        )
                        if candidate != original and candidate not in used:
                            return candidate
                    length += 1

            return self._fresh(
                lambda: f"anon_{self._random.getrandbits(32):08x}", original, used
            )

        return self._fresh(
            lambda: f"anon_{self._random.getrandbits(32):08x}", original, used
        )

    @staticmethod
    def _fresh(draw: Callable[[], Any], original: Any, used: set) -> Any:
        while True:
            candidate = draw()
            if candidate != original and candidate not in used:
                return candidate
