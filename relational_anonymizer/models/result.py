"""
Result models for anonymization runs.

This module defines the RunResult class returned by the orchestrator, along
with the per-table TableReport, the RunError records collected during a run,
and the RelationshipStats and IntegrityReport summaries produced by the
relationship manager.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from tabulate import tabulate


class TableStatus(str, Enum):
    """Outcome of processing one table."""

    COMPLETED = "completed"  # All rows processed
    FAILED = "failed"  # At least one table-fatal error
    EXCLUDED = "excluded"  # Listed in exclude_tables
    SKIPPED = "skipped"  # Not started before the deadline


@dataclass(frozen=True)
class RunError:
    """One error recorded during a run.

    Attributes:
        table_name: Table where the error occurred.
        message: Human-readable description.
        error_type: Exception class name (e.g. "DanglingReferenceError").
        column_name: Column of the failing field, if field-level.
        row_index: Position of the row in the table, if row-level.
        row_identifier: Original primary key of the row, if known.
        recovered: True when the run fell back to a substitute value.
    """

    table_name: str
    message: str
    error_type: str
    column_name: Optional[str] = None
    row_index: Optional[int] = None
    row_identifier: Any = None
    recovered: bool = False

    @property
    def is_fatal(self) -> bool:
        return not self.recovered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "column_name": self.column_name,
            "row_index": self.row_index,
            "row_identifier": self.row_identifier,
            "error_type": self.error_type,
            "message": self.message,
            "recovered": self.recovered,
        }


@dataclass
class TableReport:
    """Per-table summary of a run."""

    table_name: str
    status: TableStatus
    total_rows: int = 0
    anonymized_rows: int = 0
    anonymized_fields: List[str] = field(default_factory=list)
    remapped_references: int = 0
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "status": self.status.value,
            "total_rows": self.total_rows,
            "anonymized_rows": self.anonymized_rows,
            "anonymized_fields": list(self.anonymized_fields),
            "remapped_references": self.remapped_references,
            "duration": self.duration,
        }


@dataclass
class RelationshipStats:
    """Relationship bookkeeping for a run.

    Attributes:
        total_relationships: Relationships registered for the run.
        relationships_processed: Relationships whose foreign key column was
            rewritten in at least one processed table.
        identifiers_remapped: Cells rewritten through identity mappings
            (identity columns and foreign keys).
        id_mappings_created: Number of (table, column) mappings.
        mapped_values: Total original -> anonymized entries.
        mappings_by_table: Mapped value count per table.
    """

    total_relationships: int = 0
    relationships_processed: int = 0
    identifiers_remapped: int = 0
    id_mappings_created: int = 0
    mapped_values: int = 0
    mappings_by_table: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_relationships": self.total_relationships,
            "relationships_processed": self.relationships_processed,
            "identifiers_remapped": self.identifiers_remapped,
            "id_mappings_created": self.id_mappings_created,
            "mapped_values": self.mapped_values,
            "mappings_by_table": dict(self.mappings_by_table),
        }


@dataclass
class IntegrityReport:
    """Referential integrity check over anonymized tables."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class RunResult:
    """Complete result of one orchestrator run.

    ``success`` is False when a table-fatal error occurred (for example a
    dangling reference) or when tables were skipped at the deadline, since
    skipped tables still hold their original values. Callers should then
    inspect ``errors`` and ``skipped_tables`` before handing the tables to
    a writer.

    Attributes:
        success: Whether the output can be trusted as a complete
            anonymization.
        processed_tables: Number of tables that were processed (completed or
            failed).
        duration: Elapsed wall-clock time in seconds.
        relationship_stats: Relationship bookkeeping.
        errors: Ordered error records.
        warnings: Non-error observations (e.g. integrity violations caused
            by excluded identity columns).
        table_reports: One report per input table, in processing order.
        skipped_tables: Tables not started before the deadline.

    Example:
        >>> result = orchestrator.anonymize_dataset(tables, config)
        >>> if not result.success:
        ...     for error in result.errors:
        ...         print(error.table_name, error.message)
    """

    success: bool
    processed_tables: int
    duration: float
    relationship_stats: RelationshipStats
    errors: List[RunError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    table_reports: List[TableReport] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_errors_for_table(self, table_name: str) -> List[RunError]:
        return [error for error in self.errors if error.table_name == table_name]

    def get_table_report(self, table_name: str) -> Optional[TableReport]:
        for report in self.table_reports:
            if report.table_name == table_name:
                return report
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for serialization)."""
        return {
            "success": self.success,
            "processed_tables": self.processed_tables,
            "duration": self.duration,
            "relationship_stats": self.relationship_stats.to_dict(),
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
            "table_reports": [report.to_dict() for report in self.table_reports],
            "skipped_tables": list(self.skipped_tables),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def format_summary(self, tablefmt: str = "simple") -> str:
        """Render a human-readable summary for audit logs.

        Args:
            tablefmt: Any table format understood by ``tabulate``.

        Returns:
            Multi-line summary with one line per table and one per error.
        """
        headers = ["Table", "Status", "Rows", "Anonymized", "Remapped", "Errors"]
        rows = [
            [
                report.table_name,
                report.status.value,
                report.total_rows,
                report.anonymized_rows,
                report.remapped_references,
                len(self.get_errors_for_table(report.table_name)),
            ]
            for report in self.table_reports
        ]

        status = "SUCCESS" if self.success else "FAILED"
        lines = [
            f"Anonymization {status}: {self.processed_tables} table(s) "
            f"in {self.duration:.2f}s",
            tabulate(rows, headers=headers, tablefmt=tablefmt),
        ]

        if self.errors:
            error_rows = [
                [
                    error.table_name,
                    error.column_name or "",
                    "" if error.row_index is None else error.row_index,
                    error.error_type,
                    "yes" if error.recovered else "no",
                    error.message,
                ]
                for error in self.errors
            ]
            lines.append("")
            lines.append(
                tabulate(
                    error_rows,
                    headers=["Table", "Column", "Row", "Type", "Recovered", "Message"],
                    tablefmt=tablefmt,
                )
            )

        return "\n".join(lines)
