"""
Custom exception classes for relational anonymization.

This module defines all custom exceptions used throughout the relational
anonymizer package. Only ConfigurationError is ever raised past the
orchestrator; the other errors are collected into the run result.
"""

from typing import Any, Optional


class AnonymizationError(Exception):
    """Base exception class for all anonymization errors.

    This exception serves as the base class for all custom exceptions in the
    relational anonymizer package. It can be used to catch any
    anonymization-related error.

    Attributes:
        message: Human-readable error message describing the error.
    """

    def __init__(self, message: str) -> None:
        """Initialize an AnonymizationError with a message.

        Args:
            message: Error message describing what went wrong.
        """
        self.message = message
        super().__init__(self.message)


class ConfigurationError(AnonymizationError):
    """Exception raised when the run configuration is unusable.

    Raised for malformed financial range bounds, conflicting relationship
    declarations, or a relationship cycle that makes a valid processing
    order impossible. This error is fatal for the whole run: no table is
    touched once it has been raised.

    Attributes:
        message: Error message describing the problem.
        field: Optional name of the offending configuration field.
        cycle: Optional list of table names forming a relationship cycle.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        cycle: Optional[list[str]] = None,
    ) -> None:
        """Initialize a ConfigurationError.

        Args:
            message: Error message describing the problem.
            field: Optional name of the offending configuration field.
            cycle: Optional list of table names forming a cycle.
        """
        self.field = field
        self.cycle = cycle or []

        if self.cycle:
            message = self._build_message(message)

        super().__init__(message)

    def _build_message(self, message: str) -> str:
        """Build detailed error message with the cycle path."""
        path = " -> ".join(self.cycle + [self.cycle[0]])
        msg = [message, f"  Cycle: {path}"]
        msg.append(
            "  Break the cycle by removing one of the relationship declarations."
        )
        return "\n".join(msg)


class DanglingReferenceError(AnonymizationError):
    """Exception raised when a foreign key value has no identity mapping.

    This happens when the referenced row was filtered out (for example
    because its table is excluded) or when the snapshot itself is
    inconsistent. The referencing cell keeps its original value.

    Attributes:
        message: Error message describing the dangling reference.
        table_name: Target table that was looked up.
        column_name: Target column that was looked up.
        value: The original value that has no mapping.
        source_table: Optional table holding the foreign key.
        source_column: Optional foreign key column.
    """

    def __init__(
        self,
        message: str,
        table_name: str,
        column_name: str,
        value: Any,
        source_table: Optional[str] = None,
        source_column: Optional[str] = None,
    ) -> None:
        """Initialize a DanglingReferenceError.

        Args:
            message: Error message describing the dangling reference.
            table_name: Target table that was looked up.
            column_name: Target column that was looked up.
            value: The original value that has no mapping.
            source_table: Optional table holding the foreign key.
            source_column: Optional foreign key column.
        """
        self.table_name = table_name
        self.column_name = column_name
        self.value = value
        self.source_table = source_table
        self.source_column = source_column

        if source_table and source_column:
            message = self._build_message()

        super().__init__(message)

    def _build_message(self) -> str:
        """Build detailed error message naming both ends of the reference."""
        return (
            f"Dangling reference: {self.source_table}.{self.source_column} = "
            f"{self.value!r} has no mapping in "
            f"{self.table_name}.{self.column_name}"
        )


class FieldTransformError(AnonymizationError):
    """Exception raised when a single field cannot be transformed.

    The engine recovers from this error by falling back to a generic
    type-preserving substitution, so it never aborts a row.

    Attributes:
        message: Error message describing the failure.
        table_name: Table of the failing field.
        column_name: Column of the failing field.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        message: str,
        table_name: str,
        column_name: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.column_name = column_name
        self.cause = cause
