"""
Field-level models for anonymization.

This module defines the AnonymizationType and DataType enums, the FieldConfig
class describing how one column is anonymized, and the AnonymizedValue class
returned by the core engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class AnonymizationType(str, Enum):
    """Semantic class of a column, computed once per column.

    Attributes:
        EMAIL: Email addresses.
        PHONE: Phone numbers (format-preserving).
        NAME: First, last or full person names.
        ADDRESS: Street addresses.
        FINANCIAL: Amounts, prices, fees.
        DATE: Dates and timestamps.
        COMPANY: Company or organization names.
        DESCRIPTION: Free text such as comments and notes.
        CUSTOM: Rule-supplied generator function.
        GENERIC: Anything else; type-preserving substitution.
    """

    EMAIL = "email"
    PHONE = "phone"
    NAME = "name"
    ADDRESS = "address"
    FINANCIAL = "financial"
    DATE = "date"
    COMPANY = "company"
    DESCRIPTION = "description"
    CUSTOM = "custom"
    GENERIC = "generic"

    @property
    def is_pii(self) -> bool:
        """Whether values of this type must never be copied through."""
        return self in (
            AnonymizationType.EMAIL,
            AnonymizationType.PHONE,
            AnonymizationType.NAME,
            AnonymizationType.ADDRESS,
        )


class DataType(str, Enum):
    """Primitive type detected from a value."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    UUID = "uuid"
    JSON = "json"


@dataclass(frozen=True)
class FieldConfig:
    """How a single column is anonymized.

    Attributes:
        table_name: Table of the column.
        column_name: Column name.
        anonymization_type: Explicit type tag. When None the engine infers
            it from the column name.
        custom_generator: Callable used for AnonymizationType.CUSTOM. It
            receives the original value and returns the replacement.
        preserve_format: Keep separators and length class of the original
            (used for phone numbers).

    Example:
        >>> rule = FieldConfig("users", "email", AnonymizationType.EMAIL)
        >>> rule.anonymization_type.value
        'email'
    """

    table_name: str
    column_name: str
    anonymization_type: Optional[AnonymizationType] = None
    custom_generator: Optional[Callable[[Any], Any]] = None
    preserve_format: bool = True

    def __post_init__(self) -> None:
        if self.anonymization_type is not None and not isinstance(
            self.anonymization_type, AnonymizationType
        ):
            object.__setattr__(
                self,
                "anonymization_type",
                AnonymizationType(self.anonymization_type),
            )

    def matches(self, table_name: str, column_name: str) -> bool:
        return self.table_name == table_name and self.column_name == column_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "column_name": self.column_name,
            "anonymization_type": (
                self.anonymization_type.value if self.anonymization_type else None
            ),
            "has_custom_generator": self.custom_generator is not None,
            "preserve_format": self.preserve_format,
        }


@dataclass
class AnonymizedValue:
    """Outcome of anonymizing one value.

    Attributes:
        anonymized_value: The replacement value.
        was_anonymized: False when the value was passed through (e.g. None).
        anonymization_type: Strategy that produced the value.
        data_type: Detected primitive type of the original.
        error: Recovered failure, when the primary strategy raised and the
            generic fallback was used instead.
    """

    anonymized_value: Any
    was_anonymized: bool
    anonymization_type: AnonymizationType
    data_type: DataType = DataType.STRING
    error: Optional[Exception] = None

    @property
    def recovered(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anonymized_value": self.anonymized_value,
            "was_anonymized": self.was_anonymized,
            "anonymization_type": self.anonymization_type.value,
            "data_type": self.data_type.value,
            "error": str(self.error) if self.error else None,
        }
