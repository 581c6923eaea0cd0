"""
Per-field anonymization context.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AnonymizationContext:
    """Context passed to the core engine and the fake-data generator.

    Attributes:
        table_name: Table of the field being replaced.
        column_name: Column of the field being replaced.
        original_value: Value being replaced.
        row_data: The full original row, for cross-field plausibility.
        preserve_relationships: Whether the run preserves foreign keys.
        anonymized_row: Values already produced for earlier columns of the
            same row. Context-aware strategies read these instead of the
            original sensitive values.
    """

    table_name: str
    column_name: str
    original_value: Any = None
    row_data: Dict[str, Any] = field(default_factory=dict)
    preserve_relationships: bool = True
    anonymized_row: Dict[str, Any] = field(default_factory=dict)

    def get_sibling(self, column: str) -> Optional[Any]:
        """Return a sibling column's value, preferring the anonymized one.

        The field being replaced is never returned.
        """
        if column == self.column_name:
            return None
        if column in self.anonymized_row:
            return self.anonymized_row[column]
        return self.row_data.get(column)

    def find_sibling(self, *fragments: str) -> Optional[Any]:
        """Return the first sibling whose name contains one of ``fragments``."""
        for column in self.row_data:
            if column == self.column_name:
                continue
            lowered = column.lower()
            if any(fragment in lowered for fragment in fragments):
                value = self.get_sibling(column)
                if value is not None:
                    return value
        return None

    def find_anonymized_sibling(self, *fragments: str) -> Optional[Any]:
        """Like ``find_sibling`` but only reads already anonymized values."""
        for column, value in self.anonymized_row.items():
            if column == self.column_name or value is None:
                continue
            lowered = column.lower()
            if any(fragment in lowered for fragment in fragments):
                return value
        return None
