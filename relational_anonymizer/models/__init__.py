"""
Data models for relational anonymization.

This package contains all core data structures used by the anonymizer,
including tables and relationships, configuration, field-level types,
context, and run results.
"""

from relational_anonymizer.models.config import AnonymizationConfig, FinancialRange
from relational_anonymizer.models.context import AnonymizationContext
from relational_anonymizer.models.field import (
    AnonymizationType,
    AnonymizedValue,
    DataType,
    FieldConfig,
)
from relational_anonymizer.models.relational_table import (
    ForeignKeyRelationship,
    RelationalTable,
    RelationshipType,
)
from relational_anonymizer.models.result import (
    IntegrityReport,
    RelationshipStats,
    RunError,
    RunResult,
    TableReport,
    TableStatus,
)

__all__ = [
    "AnonymizationConfig",
    "AnonymizationContext",
    "AnonymizationType",
    "AnonymizedValue",
    "DataType",
    "FieldConfig",
    "FinancialRange",
    "ForeignKeyRelationship",
    "IntegrityReport",
    "RelationalTable",
    "RelationshipStats",
    "RelationshipType",
    "RunError",
    "RunResult",
    "TableReport",
    "TableStatus",
]
