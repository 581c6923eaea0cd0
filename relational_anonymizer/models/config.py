"""
Configuration model for relational anonymization.

This module defines the AnonymizationConfig and FinancialRange classes, which
control the behavior of an anonymization run. The configuration is immutable
and validated at construction time, so malformed bounds are rejected before
any table is touched.
"""

from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from relational_anonymizer.exceptions import ConfigurationError
from relational_anonymizer.models.field import FieldConfig


@dataclass(frozen=True)
class FinancialRange:
    """Inclusive numeric range for financial columns.

    Example:
        >>> rent = FinancialRange(15000, 80000)
        >>> rent.contains(20000)
        True
    """

    min: float
    max: float

    def __post_init__(self) -> None:
        for bound_name in ("min", "max"):
            bound = getattr(self, bound_name)
            if isinstance(bound, bool) or not isinstance(bound, Real):
                raise ConfigurationError(
                    f"Financial range bound '{bound_name}' must be numeric, "
                    f"got {bound!r}",
                    field="financial_ranges",
                )
        if self.min > self.max:
            raise ConfigurationError(
                f"Financial range min ({self.min}) is greater than max ({self.max})",
                field="financial_ranges",
            )

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}

    @classmethod
    def coerce(cls, value: Any) -> "FinancialRange":
        """Accept a FinancialRange, a ``{"min", "max"}`` dict or a pair."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            if "min" not in value or "max" not in value:
                raise ConfigurationError(
                    f"Financial range must define 'min' and 'max', got {dict(value)!r}",
                    field="financial_ranges",
                )
            return cls(value["min"], value["max"])
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(value[0], value[1])
        raise ConfigurationError(
            f"Cannot interpret {value!r} as a financial range",
            field="financial_ranges",
        )


@dataclass(frozen=True)
class AnonymizationConfig:
    """Configuration settings for an anonymization run.

    All fields have sensible defaults, so ``AnonymizationConfig()`` is a
    valid configuration that preserves relationships and generates
    realistic data.

    Attributes:
        preserve_relationships: Rewrite foreign keys through identity
            mappings so references stay valid. Defaults to True.
        generate_realistic_data: Use context-aware, plausible values (emails
            derived from the anonymized name, locale-aware phone prefixes).
            Defaults to True.
        financial_ranges: Column-name pattern -> FinancialRange. The first
            pattern contained in a financial column's name (case-insensitive,
            declaration order) bounds its replacement values.
        exclude_tables: Tables copied through unchanged.
        exclude_columns: Column names copied through unchanged in every
            table.
        custom_rules: Explicit per-column FieldConfig overrides.
        locale: Faker locale used by the generator. Defaults to "fr_FR".
        seed: Optional seed for reproducible runs.
        max_workers: Number of tables processed concurrently within a phase.

    Example:
        >>> config = AnonymizationConfig(
        ...     financial_ranges={"price": {"min": 1000, "max": 5000}},
        ...     exclude_columns={"created_at"},
        ... )
        >>> config.find_financial_range("price_per_night")
        FinancialRange(min=1000, max=5000)
    """

    preserve_relationships: bool = True
    generate_realistic_data: bool = True
    financial_ranges: Mapping[str, FinancialRange] = field(default_factory=dict)
    exclude_tables: FrozenSet[str] = frozenset()
    exclude_columns: FrozenSet[str] = frozenset()
    custom_rules: Tuple[FieldConfig, ...] = ()
    locale: str = "fr_FR"
    seed: Optional[int] = None
    max_workers: int = 1

    def __post_init__(self) -> None:
        """Validate and normalize configuration settings."""
        if not isinstance(self.preserve_relationships, bool):
            raise TypeError("preserve_relationships must be a boolean")
        if not isinstance(self.generate_realistic_data, bool):
            raise TypeError("generate_realistic_data must be a boolean")
        if not isinstance(self.locale, str) or not self.locale:
            raise TypeError("locale must be a non-empty string")
        if self.seed is not None and not isinstance(self.seed, int):
            raise TypeError("seed must be an integer or None")
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ConfigurationError(
                "max_workers must be a positive integer", field="max_workers"
            )

        if not isinstance(self.financial_ranges, Mapping):
            raise ConfigurationError(
                "financial_ranges must be a mapping of pattern -> range",
                field="financial_ranges",
            )
        ranges = {}
        for pattern, bounds in self.financial_ranges.items():
            if not isinstance(pattern, str) or not pattern:
                raise ConfigurationError(
                    f"Financial range pattern must be a non-empty string, got {pattern!r}",
                    field="financial_ranges",
                )
            ranges[pattern] = FinancialRange.coerce(bounds)
        object.__setattr__(self, "financial_ranges", MappingProxyType(ranges))

        object.__setattr__(
            self, "exclude_tables", self._as_name_set(self.exclude_tables, "exclude_tables")
        )
        object.__setattr__(
            self, "exclude_columns", self._as_name_set(self.exclude_columns, "exclude_columns")
        )

        rules = tuple(self.custom_rules)
        for rule in rules:
            if not isinstance(rule, FieldConfig):
                raise TypeError("custom_rules must contain FieldConfig instances")
        object.__setattr__(self, "custom_rules", rules)

    @staticmethod
    def _as_name_set(value: Any, field_name: str) -> FrozenSet[str]:
        if isinstance(value, str):
            # A bare string would otherwise be split into characters
            return frozenset([value])
        try:
            names = frozenset(value)
        except TypeError:
            raise TypeError(f"{field_name} must be a collection of names") from None
        return names

    def find_financial_range(self, column_name: str) -> Optional[FinancialRange]:
        """Return the range of the first pattern contained in ``column_name``."""
        lowered = column_name.lower()
        for pattern, bounds in self.financial_ranges.items():
            if pattern.lower() in lowered:
                return bounds
        return None

    def get_custom_rule(self, table_name: str, column_name: str) -> Optional[FieldConfig]:
        for rule in self.custom_rules:
            if rule.matches(table_name, column_name):
                return rule
        return None

    def is_table_excluded(self, table_name: str) -> bool:
        return table_name in self.exclude_tables

    def is_column_excluded(self, column_name: str) -> bool:
        return column_name in self.exclude_columns

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preserve_relationships": self.preserve_relationships,
            "generate_realistic_data": self.generate_realistic_data,
            "financial_ranges": {
                pattern: bounds.to_dict()
                for pattern, bounds in self.financial_ranges.items()
            },
            "exclude_tables": sorted(self.exclude_tables),
            "exclude_columns": sorted(self.exclude_columns),
            "custom_rules": [rule.to_dict() for rule in self.custom_rules],
            "locale": self.locale,
            "seed": self.seed,
            "max_workers": self.max_workers,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnonymizationConfig":
        """Build a configuration from a plain dictionary.

        Both snake_case keys and the camelCase keys of the booking platform's
        environment configuration files are accepted.

        Args:
            data: Configuration dictionary.

        Returns:
            Validated AnonymizationConfig.

        Raises:
            ConfigurationError: If ranges are malformed or keys are unknown.
        """
        aliases = {
            "preserveRelationships": "preserve_relationships",
            "generateRealisticData": "generate_realistic_data",
            "financialRanges": "financial_ranges",
            "excludeTables": "exclude_tables",
            "excludeColumns": "exclude_columns",
            "customRules": "custom_rules",
            "maxWorkers": "max_workers",
        }
        known = set(cls.__dataclass_fields__)
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ConfigurationError(
                    f"Unknown configuration key: {key!r}", field=key
                )
            kwargs[name] = value
        return cls(**kwargs)
