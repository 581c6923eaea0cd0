"""
Error collection for anonymization runs.

This module defines the ErrorCollector class, which gathers per-table,
per-row and per-field errors during a run so they can be reported in the
RunResult instead of being raised past the orchestrator.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

from relational_anonymizer.exceptions import AnonymizationError
from relational_anonymizer.models.result import RunError


class ErrorCollector:
    """Collects errors and warnings during an anonymization run.

    Tables may be processed concurrently, so every mutation is guarded by a
    lock. Records keep the order in which they were added.

    Attributes:
        errors: List of RunError objects collected during the run.
        warnings: List of warning messages collected during the run.

    Example:
        >>> collector = ErrorCollector()
        >>> collector.add_error("users", "boom", "FieldTransformError",
        ...                     column_name="email", recovered=True)
        >>> collector.has_fatal_errors()
        False
        >>> len(collector.get_all())
        1
    """

    def __init__(self) -> None:
        """Initialize an ErrorCollector."""
        self.errors: list[RunError] = []
        self.warnings: list[str] = []
        self._lock = threading.Lock()

    def add_error(
        self,
        table_name: str,
        message: str,
        error_type: str,
        column_name: Optional[str] = None,
        row_index: Optional[int] = None,
        row_identifier: Any = None,
        recovered: bool = False,
    ) -> RunError:
        """Add an error record.

        Args:
            table_name: Table where the error occurred.
            message: Error message text.
            error_type: Exception class name.
            column_name: Optional column of the failing field.
            row_index: Optional row position.
            row_identifier: Optional original primary key of the row.
            recovered: Whether a substitute value was used.

        Returns:
            The RunError that was recorded.
        """
        error = RunError(
            table_name=table_name,
            message=message,
            error_type=error_type,
            column_name=column_name,
            row_index=row_index,
            row_identifier=row_identifier,
            recovered=recovered,
        )
        with self._lock:
            self.errors.append(error)
        return error

    def add_exception(
        self,
        table_name: str,
        exc: BaseException,
        column_name: Optional[str] = None,
        row_index: Optional[int] = None,
        row_identifier: Any = None,
        recovered: bool = False,
    ) -> RunError:
        """Record an exception, using its class name as the error type."""
        message = exc.message if isinstance(exc, AnonymizationError) else str(exc)
        return self.add_error(
            table_name=table_name,
            message=message,
            error_type=type(exc).__name__,
            column_name=column_name,
            row_index=row_index,
            row_identifier=row_identifier,
            recovered=recovered,
        )

    def add_warning(self, message: str) -> None:
        with self._lock:
            self.warnings.append(message)

    def has_fatal_errors(self) -> bool:
        """Check if any unrecovered error has been collected."""
        with self._lock:
            return any(error.is_fatal for error in self.errors)

    def get_all(self) -> list[RunError]:
        """Get all collected errors, in the order they were added."""
        with self._lock:
            return self.errors.copy()

    def get_by_table(self, table_name: str) -> list[RunError]:
        with self._lock:
            return [error for error in self.errors if error.table_name == table_name]

    def get_warnings(self) -> list[str]:
        with self._lock:
            return self.warnings.copy()

    def get_summary(self) -> dict[str, int]:
        """Get a count of errors grouped by error type.

        Example:
            >>> collector = ErrorCollector()
            >>> collector.add_error("t", "a", "DanglingReferenceError")
            >>> collector.add_error("t", "b", "DanglingReferenceError")
            >>> collector.get_summary()
            {'DanglingReferenceError': 2}
        """
        summary: dict[str, int] = {}
        with self._lock:
            for error in self.errors:
                summary[error.error_type] = summary.get(error.error_type, 0) + 1
        return summary

    def clear(self) -> None:
        with self._lock:
            self.errors.clear()
            self.warnings.clear()
