"""
Core anonymization engine.

This module defines the CoreAnonymizationEngine class, which classifies a
column into an AnonymizationType and transforms individual values with the
matching strategy. The engine has no cross-table awareness and does not
mutate shared state, so it can be called concurrently for different fields.
"""

import datetime
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from numbers import Real
from typing import Any, Callable, Dict, List, Optional, Sequence

from relational_anonymizer.exceptions import FieldTransformError
from relational_anonymizer.generator.fake_data_generator import (
    EMAIL_DOMAINS,
    FakeDataGenerator,
    FakeDataOptions,
    quantize_like,
)
from relational_anonymizer.models.config import AnonymizationConfig
from relational_anonymizer.models.context import AnonymizationContext
from relational_anonymizer.models.field import (
    AnonymizationType,
    AnonymizedValue,
    DataType,
    FieldConfig,
)
from relational_anonymizer.utils.text import (
    column_matches,
    is_email,
    is_iso_date,
    is_uuid,
)

logger = logging.getLogger(__name__)

# Column-name words per type, checked in this order
CLASSIFICATION_RULES = (
    (AnonymizationType.EMAIL, ("email", "mail", "courriel")),
    (AnonymizationType.PHONE, ("phone", "telephone", "mobile", "tel", "fax")),
    (AnonymizationType.NAME, ("name", "nom", "prenom", "surname")),
    (AnonymizationType.ADDRESS, ("address", "adresse", "street")),
    (
        AnonymizationType.FINANCIAL,
        ("amount", "price", "cost", "montant", "prix", "total", "fee", "fees", "salary", "balance"),
    ),
    (AnonymizationType.COMPANY, ("company", "organization", "organisation", "entreprise")),
    (AnonymizationType.DESCRIPTION, ("description", "comment", "note", "message", "bio")),
    (AnonymizationType.DATE, ("date", "at", "birth", "naissance")),
)

# Attempts at producing a PII value that differs from the original
_MAX_ATTEMPTS = 10

# Proportional jitter applied to unbounded financial values
FINANCIAL_JITTER = 0.3


def detect_data_type(value: Any) -> DataType:
    """Detect the primitive type of a value.

    Example:
        >>> detect_data_type(42)
        <DataType.NUMBER: 'number'>
        >>> detect_data_type("2023-01-01")
        <DataType.DATE: 'date'>
    """
    if value is None:
        return DataType.STRING
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, (Real, Decimal)):
        return DataType.NUMBER
    if isinstance(value, (datetime.date, datetime.datetime)):
        return DataType.DATE
    if isinstance(value, uuid.UUID):
        return DataType.UUID
    if isinstance(value, str):
        if is_uuid(value):
            return DataType.UUID
        if is_iso_date(value):
            return DataType.DATE
        return DataType.STRING
    if isinstance(value, (dict, list, tuple)):
        return DataType.JSON
    return DataType.STRING


def classify_column_name(column_name: str) -> AnonymizationType:
    """Infer the anonymization type from the words of a column name.

    Example:
        >>> classify_column_name("hotel_name")
        <AnonymizationType.NAME: 'name'>
    """
    for anonymization_type, fragments in CLASSIFICATION_RULES:
        if column_matches(column_name, fragments):
            return anonymization_type
    return AnonymizationType.GENERIC


def _narrow_type(
    anonymization_type: AnonymizationType, data_type: DataType
) -> AnonymizationType:
    if anonymization_type == AnonymizationType.FINANCIAL and data_type != DataType.NUMBER:
        return AnonymizationType.GENERIC
    if anonymization_type == AnonymizationType.DATE and data_type != DataType.DATE:
        return AnonymizationType.GENERIC
    return anonymization_type


def _smallest_step(value: Any) -> Any:
    """One unit in the last place of an amount."""
    if isinstance(value, int):
        return 1
    if isinstance(value, Decimal):
        exponent = value.as_tuple().exponent
        if isinstance(exponent, int) and exponent < 0:
            return Decimal(1).scaleb(exponent)
        return Decimal(1)
    return 0.01


@dataclass
class BatchResult:
    """Result of anonymizing the rows of a single table."""

    anonymized_data: List[Dict[str, Any]]
    total_records: int = 0
    anonymized_records: int = 0
    anonymized_fields: List[str] = field(default_factory=list)
    errors: List[FieldTransformError] = field(default_factory=list)


class CoreAnonymizationEngine:
    """Classifies fields and transforms individual values.

    Usage:
        engine = CoreAnonymizationEngine(config)
        field_type = engine.classify_column("guest_email")
        result = engine.anonymize_value(
            "a@b.dz",
            FieldConfig("reservations", "guest_email", field_type),
            context,
        )
        result.anonymized_value
    """

    def __init__(
        self,
        config: Optional[AnonymizationConfig] = None,
        generator: Optional[FakeDataGenerator] = None,
    ) -> None:
        """Initialize a CoreAnonymizationEngine.

        Args:
            config: Run configuration (financial ranges, realism flag).
            generator: Fake-data generator. Built from the config locale and
                seed when omitted.
        """
        self.config = config or AnonymizationConfig()
        self.generator = generator or FakeDataGenerator(
            locale=self.config.locale, seed=self.config.seed
        )
        self._strategies: Dict[AnonymizationType, Callable[..., Any]] = {
            AnonymizationType.EMAIL: self._anonymize_email,
            AnonymizationType.PHONE: self._anonymize_phone,
            AnonymizationType.NAME: self._anonymize_name,
            AnonymizationType.ADDRESS: self._anonymize_address,
            AnonymizationType.FINANCIAL: self._anonymize_financial,
            AnonymizationType.DATE: self._anonymize_date,
            AnonymizationType.COMPANY: self._anonymize_company,
            AnonymizationType.DESCRIPTION: self._anonymize_description,
            AnonymizationType.CUSTOM: self._anonymize_custom,
            AnonymizationType.GENERIC: self._anonymize_generic,
        }

    def detect_data_type(self, value: Any) -> DataType:
        return detect_data_type(value)

    def classify_column(
        self, column_name: str, sample_value: Any = None
    ) -> AnonymizationType:
        """Classify a column once, from its name and a sample value.

        Financial and date classifications are only kept when the sample
        value is compatible with them; e.g. a ``total_label`` text column
        falls back to GENERIC. Structured (JSON) columns keep the type of
        their name, which becomes the default for their leaves.

        Args:
            column_name: Column name.
            sample_value: Optional non-null value from the column.

        Returns:
            The AnonymizationType used for every value of the column.
        """
        anonymization_type = classify_column_name(column_name)
        if sample_value is None:
            return anonymization_type

        data_type = detect_data_type(sample_value)
        if data_type == DataType.JSON:
            return anonymization_type
        return _narrow_type(anonymization_type, data_type)

    def build_field_config(
        self, table_name: str, column_name: str, sample_value: Any = None
    ) -> FieldConfig:
        """Return the custom rule for a column, or a classified FieldConfig."""
        rule = self.config.get_custom_rule(table_name, column_name)
        if rule is not None:
            if rule.anonymization_type is None:
                return FieldConfig(
                    table_name,
                    column_name,
                    self.classify_column(column_name, sample_value),
                    rule.custom_generator,
                    rule.preserve_format,
                )
            return rule
        return FieldConfig(
            table_name, column_name, self.classify_column(column_name, sample_value)
        )

    def anonymize_value(
        self,
        original_value: Any,
        field_config: FieldConfig,
        context: AnonymizationContext,
    ) -> AnonymizedValue:
        """Anonymize a single value.

        ``None`` is passed through. Dicts and lists are rebuilt leaf by
        leaf. When the selected strategy raises, the failure is wrapped in a
        FieldTransformError attached to the result and a generic
        type-preserving substitute is returned instead.

        Args:
            original_value: Value to replace.
            field_config: Column configuration; its type is inferred from
                the column name when not set.
            context: Field context.

        Returns:
            AnonymizedValue with the replacement and metadata.
        """
        anonymization_type = field_config.anonymization_type or self.classify_column(
            field_config.column_name, original_value
        )
        data_type = detect_data_type(original_value)

        if original_value is None:
            return AnonymizedValue(None, False, anonymization_type, data_type)

        strategy = self._strategies[anonymization_type]
        if data_type == DataType.JSON and anonymization_type != AnonymizationType.CUSTOM:
            strategy = self._structured_strategy(anonymization_type)
        try:
            value = self._produce(strategy, anonymization_type, original_value, field_config, context)
            return AnonymizedValue(value, True, anonymization_type, data_type)
        except Exception as e:
            error = FieldTransformError(
                f"{anonymization_type.value} strategy failed for "
                f"{field_config.table_name}.{field_config.column_name}: {e}",
                table_name=field_config.table_name,
                column_name=field_config.column_name,
                cause=e,
            )
            logger.debug("Recovered field failure: %s", error.message)

        fallback = self._produce(
            self._anonymize_generic,
            AnonymizationType.GENERIC,
            original_value,
            field_config,
            context,
        )
        return AnonymizedValue(
            fallback,
            fallback != original_value,
            AnonymizationType.GENERIC,
            data_type,
            error=error,
        )

    def anonymize_batch(
        self,
        rows: Sequence[Dict[str, Any]],
        field_configs: Sequence[FieldConfig],
        table_name: str,
    ) -> BatchResult:
        """Anonymize the configured columns of a list of rows.

        Input rows are not modified; copies are returned. Columns without a
        FieldConfig are copied through.
        """
        configs = [c for c in field_configs if c.table_name == table_name]
        result = BatchResult(anonymized_data=[], total_records=len(rows))
        touched: List[str] = []

        for row in rows:
            anonymized_row = dict(row)
            changed = False
            for config in configs:
                if config.column_name not in row:
                    continue
                context = AnonymizationContext(
                    table_name=table_name,
                    column_name=config.column_name,
                    original_value=row[config.column_name],
                    row_data=row,
                    preserve_relationships=self.config.preserve_relationships,
                    anonymized_row=anonymized_row,
                )
                outcome = self.anonymize_value(row[config.column_name], config, context)
                anonymized_row[config.column_name] = outcome.anonymized_value
                if outcome.error is not None:
                    result.errors.append(outcome.error)
                if outcome.was_anonymized:
                    changed = True
                    if config.column_name not in touched:
                        touched.append(config.column_name)
            result.anonymized_data.append(anonymized_row)
            if changed:
                result.anonymized_records += 1

        result.anonymized_fields = touched
        return result

    def _produce(
        self,
        strategy: Callable[..., Any],
        anonymization_type: AnonymizationType,
        original_value: Any,
        field_config: FieldConfig,
        context: AnonymizationContext,
    ) -> Any:
        value = strategy(original_value, field_config, context)
        if not anonymization_type.is_pii:
            return value
        attempts = 1
        while value == original_value and attempts < _MAX_ATTEMPTS:
            value = strategy(original_value, field_config, context)
            attempts += 1
        if value == original_value:
            raise ValueError("could not produce a value different from the original")
        return value

    def _structured_strategy(
        self, anonymization_type: AnonymizationType
    ) -> Callable[..., Any]:
        def strategy(original_value, field_config, context):
            return self._anonymize_structure(
                original_value, anonymization_type, field_config, context, None
            )

        return strategy

    def _anonymize_structure(
        self,
        value: Any,
        parent_type: AnonymizationType,
        field_config: FieldConfig,
        context: AnonymizationContext,
        key: Optional[str],
    ) -> Any:
        """Rebuild a dict or list with every leaf anonymized.

        A leaf is classified by its own key first (``{"email": ...}``), then
        falls back to the type of the enclosing column. Leaves that match
        neither get a type-preserving generic value.
        """
        if value is None:
            return None
        if isinstance(value, dict):
            return {
                k: self._anonymize_structure(v, parent_type, field_config, context, str(k))
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            items = [
                self._anonymize_structure(v, parent_type, field_config, context, key)
                for v in value
            ]
            return tuple(items) if isinstance(value, tuple) else items

        leaf_type = self._leaf_type(value, parent_type, key)
        leaf_config = FieldConfig(
            field_config.table_name,
            key or field_config.column_name,
            leaf_type,
            preserve_format=field_config.preserve_format,
        )
        return self._produce(
            self._strategies[leaf_type], leaf_type, value, leaf_config, context
        )

    @staticmethod
    def _leaf_type(
        value: Any, parent_type: AnonymizationType, key: Optional[str]
    ) -> AnonymizationType:
        data_type = detect_data_type(value)
        if data_type == DataType.BOOLEAN:
            return AnonymizationType.GENERIC

        by_key = classify_column_name(key) if key else AnonymizationType.GENERIC
        leaf_type = _narrow_type(by_key, data_type)
        if leaf_type == AnonymizationType.GENERIC:
            leaf_type = _narrow_type(parent_type, data_type)
        if leaf_type == AnonymizationType.GENERIC and isinstance(value, str) and is_email(value):
            return AnonymizationType.EMAIL
        if data_type == DataType.NUMBER and leaf_type not in (
            AnonymizationType.FINANCIAL,
            AnonymizationType.PHONE,
        ):
            return AnonymizationType.GENERIC
        if leaf_type == AnonymizationType.CUSTOM:
            return AnonymizationType.GENERIC
        return leaf_type

    # === Strategies ===

    def _anonymize_email(self, original_value, field_config, context):
        if not self.config.generate_realistic_data:
            token = self.generator.faker.lexify(
                "??????", letters="abcdefghijklmnopqrstuvwxyz0123456789"
            )
            return f"user{token}@{EMAIL_DOMAINS[0]}"

        display_name = context.find_anonymized_sibling("name", "nom")
        if not isinstance(display_name, str) and context.find_sibling("name", "nom"):
            # The row has a name but it was not anonymized yet (or excluded)
            display_name = self.generator.generate_name("full_name")
        return self.generator.generate_email(
            context, display_name if isinstance(display_name, str) else None
        )

    def _anonymize_phone(self, original_value, field_config, context):
        if not isinstance(original_value, str):
            if isinstance(original_value, int) and not isinstance(original_value, bool):
                return self.generator.generate_by_type(DataType.NUMBER, original_value)
            raise TypeError(f"unsupported phone value type {type(original_value).__name__}")
        return self.generator.generate_phone(
            original_value,
            context if self.config.generate_realistic_data else None,
            field_config.preserve_format,
        )

    def _anonymize_name(self, original_value, field_config, context):
        if not isinstance(original_value, str):
            raise TypeError(f"unsupported name value type {type(original_value).__name__}")
        return self.generator.generate_name(field_config.column_name)

    def _anonymize_address(self, original_value, field_config, context):
        if column_matches(field_config.column_name, ("city", "ville")):
            return self.generator.generate_city()
        return self.generator.generate_address()

    def _anonymize_financial(self, original_value, field_config, context):
        if isinstance(original_value, bool) or not isinstance(original_value, (Real, Decimal)):
            raise TypeError(
                f"financial value must be numeric, got {type(original_value).__name__}"
            )

        bounds = self.config.find_financial_range(field_config.column_name)
        if bounds is not None:
            return self.generator.generate_financial_amount(original_value, bounds)

        if original_value == 0:
            return self.generator.generate_financial_amount(original_value)

        amount = float(original_value)
        for _ in range(_MAX_ATTEMPTS):
            factor = self.generator.random.uniform(1 - FINANCIAL_JITTER, 1 + FINANCIAL_JITTER)
            if isinstance(original_value, int):
                value = int(round(amount * factor))
            elif isinstance(original_value, Decimal):
                value = quantize_like(amount * factor, original_value)
            else:
                value = round(amount * factor, 2)
            if value != original_value:
                return value

        # Amounts too small for the jitter to move them shift by one unit
        step = self.generator.random.choice((-1, 1)) * _smallest_step(original_value)
        return original_value + step

    def _anonymize_date(self, original_value, field_config, context):
        return self.generator.generate_date(original_value, field_config.column_name)

    def _anonymize_company(self, original_value, field_config, context):
        return self.generator.generate_company_name()

    def _anonymize_description(self, original_value, field_config, context):
        return self.generator.generate_description(original_value)

    def _anonymize_custom(self, original_value, field_config, context):
        if field_config.custom_generator is None:
            raise ValueError("custom anonymization requires a custom_generator")
        return field_config.custom_generator(original_value)

    def _anonymize_generic(self, original_value, field_config, context):
        return self.generator.generate_fake_data(
            detect_data_type(original_value),
            original_value,
            context,
            FakeDataOptions(context_aware=False),
        )
