"""
Anonymization orchestrator for relational datasets.

This module defines the AnonymizationOrchestrator class, which drives an
end-to-end anonymization pass over a set of related tables while keeping
every declared foreign key resolvable.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from relational_anonymizer.engine.core_engine import CoreAnonymizationEngine
from relational_anonymizer.exceptions import ConfigurationError, DanglingReferenceError
from relational_anonymizer.graph.table_dependency_graph import TableDependencyGraph
from relational_anonymizer.models.config import AnonymizationConfig
from relational_anonymizer.models.context import AnonymizationContext
from relational_anonymizer.models.field import AnonymizationType, FieldConfig
from relational_anonymizer.models.relational_table import (
    ForeignKeyRelationship,
    RelationalTable,
)
from relational_anonymizer.models.result import (
    RelationshipStats,
    RunResult,
    TableReport,
    TableStatus,
)
from relational_anonymizer.registry.relationship_manager import RelationshipManager
from relational_anonymizer.utils.error_collector import ErrorCollector

logger = logging.getLogger(__name__)


class ColumnAction(str, Enum):
    """How the field pass treats one column of a table."""

    EXCLUDED = "excluded"  # Copied through unchanged
    IDENTITY = "identity"  # Replaced by the table's own identity mapping
    FOREIGN_KEY = "foreign_key"  # Rewritten through the referenced mapping
    ANONYMIZE = "anonymize"  # Delegated to the core engine


# Columns whose values feed context-aware strategies go first
_TYPE_PRIORITY = {
    AnonymizationType.NAME: 0,
    AnonymizationType.EMAIL: 2,
}


@dataclass
class ColumnPlan:
    """Action computed once per column, before any row is processed."""

    column_name: str
    action: ColumnAction
    field_config: Optional[FieldConfig] = None
    relationship: Optional[ForeignKeyRelationship] = None


@dataclass
class _TableOutcome:
    report: TableReport
    rewritten_relationships: Set[Tuple[str, str]] = field(default_factory=set)
    identifiers_remapped: int = 0


class AnonymizationOrchestrator:
    """Relational anonymizer (main entry point).

    Responsibilities:
    1. Validate relationships and compute a parents-first processing order
    2. Create identity mappings for every identity-bearing column
    3. Anonymize each table, rewriting foreign keys through the mappings
    4. Collect errors and statistics into a RunResult

    Tables are modified in place: each row keeps its identity and key order,
    only values change.

    Usage:
        orchestrator = AnonymizationOrchestrator(config)
        result = orchestrator.anonymize_dataset(tables)
        print(result.format_summary())
    """

    def __init__(
        self,
        config: Optional[AnonymizationConfig] = None,
        relationship_manager: Optional[RelationshipManager] = None,
        engine: Optional[CoreAnonymizationEngine] = None,
    ) -> None:
        """Initialize an AnonymizationOrchestrator.

        Args:
            config: Default configuration for runs.
            relationship_manager: Mapping store. A new one is created when
                omitted; passing one in gives the caller access to the
                mappings after the run.
            engine: Field-level engine. Built from the config when omitted.
        """
        self.config = config or AnonymizationConfig()
        self.relationship_manager = relationship_manager or RelationshipManager(
            seed=self.config.seed
        )
        self._owns_engine = engine is None
        self.engine = engine or CoreAnonymizationEngine(self.config)

    def anonymize_dataset(
        self,
        tables: Sequence[RelationalTable],
        config: Optional[AnonymizationConfig] = None,
        deadline: Optional[float] = None,
    ) -> RunResult:
        """Anonymize a set of related tables.

        Args:
            tables: Tables to anonymize. Their rows are rewritten in place.
            config: Configuration for this run. Defaults to the one given at
                construction.
            deadline: Optional time budget in seconds. Tables not started
                when it expires are reported in ``skipped_tables``.

        Returns:
            RunResult with per-table reports, errors and statistics.

        Raises:
            ConfigurationError: If table names are duplicated, relationships
                form a cycle across tables, or a foreign key column is
                declared against two different targets. No row is modified
                in that case.
        """
        config = self._use_config(config)
        start = time.perf_counter()
        deadline_at = None if deadline is None else start + deadline

        by_name = self._index_tables(tables)
        graph = TableDependencyGraph.from_tables(tables)
        order = [name for name in graph.processing_order() if name in by_name]
        relationships = graph.get_relationships()

        logger.info(
            "Anonymizing %d table(s) with %d relationship(s)",
            len(order),
            len(relationships),
        )
        logger.debug("Processing order: %s", ", ".join(order))

        manager = self.relationship_manager
        manager.reset()
        manager.register_relationships(relationships)

        collector = ErrorCollector()
        originals = {
            name: [dict(row) for row in by_name[name].rows] for name in order
        }
        active = [name for name in order if not config.is_table_excluded(name)]

        # Phase 1: identity mappings, a hard barrier before any rewrite
        if config.preserve_relationships:
            identity_columns = self._identity_columns(by_name, active, relationships)
            self._run_phase(
                active,
                lambda name: self._create_mappings(
                    by_name[name], identity_columns[name], collector
                ),
                config.max_workers,
            )
            self._derive_chained_mappings(by_name, active, relationships)

        # Phase 2: field pass
        outcomes: Dict[str, _TableOutcome] = {}
        for outcome in self._run_phase(
            active,
            lambda name: self._process_table(
                by_name[name], originals[name], config, collector, deadline_at
            ),
            config.max_workers,
        ):
            outcomes[outcome.report.table_name] = outcome

        if config.preserve_relationships:
            integrity = manager.validate_referential_integrity(
                [by_name[name] for name in order]
            )
            for message in integrity.errors:
                collector.add_warning(message)

        table_reports = []
        for name in order:
            if name in outcomes:
                table_reports.append(outcomes[name].report)
            else:
                table_reports.append(
                    TableReport(
                        table_name=name,
                        status=TableStatus.EXCLUDED,
                        total_rows=len(by_name[name].rows),
                    )
                )

        stats = self._build_statistics(outcomes.values())
        skipped = [r.table_name for r in table_reports if r.status == TableStatus.SKIPPED]
        processed = sum(
            1
            for r in table_reports
            if r.status in (TableStatus.COMPLETED, TableStatus.FAILED)
        )

        result = RunResult(
            success=not collector.has_fatal_errors() and not skipped,
            processed_tables=processed,
            duration=time.perf_counter() - start,
            relationship_stats=stats,
            errors=collector.get_all(),
            warnings=collector.get_warnings(),
            table_reports=table_reports,
            skipped_tables=skipped,
        )

        logger.info(
            "Anonymization %s: %d table(s) processed, %d skipped, %d error(s) in %.2fs",
            "succeeded" if result.success else "failed",
            result.processed_tables,
            len(result.skipped_tables),
            len(result.errors),
            result.duration,
        )
        return result

    def get_statistics(self) -> RelationshipStats:
        return self.relationship_manager.get_statistics()

    def reset(self) -> None:
        """Forget relationships and mappings from the previous run."""
        self.relationship_manager.reset()

    def build_plan(
        self,
        table: RelationalTable,
        config: Optional[AnonymizationConfig] = None,
    ) -> List[ColumnPlan]:
        """Compute the per-column actions of the field pass for a table.

        Exclusion wins over everything. With relationship preservation on,
        foreign key columns are rewritten through their target mapping and
        identity columns through the table's own mapping. Remaining columns
        are classified once and ordered so that name columns come before
        email columns.
        """
        config = config or self.config
        manager = self.relationship_manager
        targeted = {
            rel.target_column
            for rel in manager.get_relationships_to(table.table_name)
        }
        identity = set(table.get_primary_key_columns()) | targeted

        fixed: List[ColumnPlan] = []
        anonymized: List[ColumnPlan] = []
        for column in table.get_columns():
            if config.is_column_excluded(column):
                fixed.append(ColumnPlan(column, ColumnAction.EXCLUDED))
                continue

            if config.preserve_relationships:
                relationship = manager.get_relationship(table.table_name, column)
                if relationship is not None:
                    fixed.append(
                        ColumnPlan(column, ColumnAction.FOREIGN_KEY, relationship=relationship)
                    )
                    continue
                if column in identity:
                    fixed.append(ColumnPlan(column, ColumnAction.IDENTITY))
                    continue

            field_config = self.engine.build_field_config(
                table.table_name, column, table.get_sample_value(column)
            )
            anonymized.append(
                ColumnPlan(column, ColumnAction.ANONYMIZE, field_config=field_config)
            )

        anonymized.sort(
            key=lambda plan: _TYPE_PRIORITY.get(plan.field_config.anonymization_type, 1)
        )
        return fixed + anonymized

    def _use_config(self, config: Optional[AnonymizationConfig]) -> AnonymizationConfig:
        if config is None or config is self.config:
            return self.config
        self.config = config
        if self._owns_engine:
            self.engine = CoreAnonymizationEngine(config)
        return config

    @staticmethod
    def _index_tables(tables: Sequence[RelationalTable]) -> Dict[str, RelationalTable]:
        by_name: Dict[str, RelationalTable] = {}
        for table in tables:
            if table.table_name in by_name:
                raise ConfigurationError(
                    f"Duplicate table name: {table.table_name}", field="tables"
                )
            by_name[table.table_name] = table
        return by_name

    @staticmethod
    def _run_phase(
        names: List[str], task: Callable[[str], Any], max_workers: int
    ) -> List[Any]:
        if max_workers <= 1 or len(names) <= 1:
            return [task(name) for name in names]
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(task, names))

    @staticmethod
    def _identity_columns(
        by_name: Dict[str, RelationalTable],
        names: List[str],
        relationships: List[ForeignKeyRelationship],
    ) -> Dict[str, List[str]]:
        """Columns that get their own identity mapping, per table.

        Foreign key source columns are left out: their values are rewritten
        through the referenced mapping instead.
        """
        sources = {(rel.source_table, rel.source_column) for rel in relationships}
        columns: Dict[str, List[str]] = {}
        for name in names:
            table = by_name[name]
            candidates = list(table.get_primary_key_columns())
            for rel in relationships:
                if (
                    rel.target_table == name
                    and rel.target_column not in candidates
                    and table.has_column(rel.target_column)
                ):
                    candidates.append(rel.target_column)
            columns[name] = [c for c in candidates if (name, c) not in sources]
        return columns

    def _create_mappings(
        self, table: RelationalTable, columns: List[str], collector: ErrorCollector
    ) -> None:
        for column in columns:
            try:
                mapping = self.relationship_manager.create_id_mapping(
                    table.table_name, column, table.get_column_values(column)
                )
            except Exception as e:
                logger.exception(
                    "Identity mapping failed for %s.%s", table.table_name, column
                )
                collector.add_exception(table.table_name, e, column_name=column)
                continue
            logger.debug(
                "Mapped %d value(s) of %s.%s", len(mapping), table.table_name, column
            )

    def _derive_chained_mappings(
        self,
        by_name: Dict[str, RelationalTable],
        names: List[str],
        relationships: List[ForeignKeyRelationship],
    ) -> None:
        """Map referenced columns that are themselves foreign keys.

        For ``profiles.user_id -> users.id`` referenced by
        ``settings.profile_id -> profiles.user_id``, the mapping of
        ``profiles.user_id`` must agree with the rewritten values, so it is
        derived from the mapping of ``users.id``. Tables are visited parents
        first, which makes longer chains resolve too.
        """
        manager = self.relationship_manager
        targeted = {(rel.target_table, rel.target_column) for rel in relationships}
        active = set(names)

        for name in names:
            for rel in manager.get_relationships_from(name):
                key = (rel.source_table, rel.source_column)
                if key not in targeted or rel.target_table not in active:
                    continue
                derived: Dict[Any, Any] = {}
                for value in by_name[name].get_column_values(rel.source_column):
                    if value is None or value in derived:
                        continue
                    try:
                        derived[value] = manager.lookup(
                            rel.target_table, rel.target_column, value
                        )
                    except DanglingReferenceError:
                        # Reported by the field pass of the referencing table
                        continue
                manager.import_mappings({f"{rel.source_table}.{rel.source_column}": derived})

    def _process_table(
        self,
        table: RelationalTable,
        original_rows: List[Dict[str, Any]],
        config: AnonymizationConfig,
        collector: ErrorCollector,
        deadline_at: Optional[float],
    ) -> _TableOutcome:
        name = table.table_name
        if deadline_at is not None and time.perf_counter() >= deadline_at:
            logger.warning("Deadline reached, skipping table %s", name)
            return _TableOutcome(
                TableReport(name, TableStatus.SKIPPED, total_rows=len(table.rows))
            )

        started = time.perf_counter()
        outcome = _TableOutcome(
            TableReport(name, TableStatus.COMPLETED, total_rows=len(table.rows))
        )
        try:
            plan = self.build_plan(table, config)
            touched: Set[str] = set()
            for row_index, (row, original) in enumerate(zip(table.rows, original_rows)):
                if self._process_row(
                    table, row_index, row, original, plan, config, collector, outcome, touched
                ):
                    outcome.report.anonymized_rows += 1
            outcome.report.anonymized_fields = [
                p.column_name for p in plan if p.column_name in touched
            ]
        except Exception as e:
            logger.exception("Unexpected failure while anonymizing table %s", name)
            collector.add_exception(name, e)
            outcome.report.status = TableStatus.FAILED

        outcome.report.duration = time.perf_counter() - started
        logger.debug(
            "Table %s %s: %d/%d row(s) anonymized, %d reference(s) remapped",
            name,
            outcome.report.status.value,
            outcome.report.anonymized_rows,
            outcome.report.total_rows,
            outcome.report.remapped_references,
        )
        return outcome

    def _process_row(
        self,
        table: RelationalTable,
        row_index: int,
        row: Dict[str, Any],
        original: Dict[str, Any],
        plan: List[ColumnPlan],
        config: AnonymizationConfig,
        collector: ErrorCollector,
        outcome: _TableOutcome,
        touched: Set[str],
    ) -> bool:
        """Rewrite one row in place. Returns True if any value changed."""
        name = table.table_name
        manager = self.relationship_manager
        row_identifier = self._row_identifier(table, original)
        produced: Dict[str, Any] = {}
        changed = False

        for column_plan in plan:
            column = column_plan.column_name
            if column not in original or column_plan.action == ColumnAction.EXCLUDED:
                continue
            value = original[column]

            if column_plan.action == ColumnAction.IDENTITY:
                if value is None:
                    continue
                try:
                    new_value = manager.lookup(name, column, value)
                except DanglingReferenceError as e:
                    logger.warning("%s", e.message)
                    collector.add_exception(
                        name,
                        e,
                        column_name=column,
                        row_index=row_index,
                        row_identifier=row_identifier,
                    )
                    outcome.report.status = TableStatus.FAILED
                    continue
                outcome.identifiers_remapped += 1

            elif column_plan.action == ColumnAction.FOREIGN_KEY:
                if value is None:
                    continue
                try:
                    new_value = manager.get_anonymized_reference(value, name, column)
                except DanglingReferenceError as e:
                    logger.warning("%s", e.message)
                    collector.add_exception(
                        name,
                        e,
                        column_name=column,
                        row_index=row_index,
                        row_identifier=row_identifier,
                    )
                    outcome.report.status = TableStatus.FAILED
                    continue
                outcome.identifiers_remapped += 1
                outcome.report.remapped_references += 1
                relationship = column_plan.relationship
                outcome.rewritten_relationships.add(
                    (relationship.source_table, relationship.source_column)
                )

            else:
                context = AnonymizationContext(
                    table_name=name,
                    column_name=column,
                    original_value=value,
                    row_data=original,
                    preserve_relationships=config.preserve_relationships,
                    anonymized_row=produced,
                )
                result = self.engine.anonymize_value(
                    value, column_plan.field_config, context
                )
                if result.error is not None:
                    collector.add_exception(
                        name,
                        result.error,
                        column_name=column,
                        row_index=row_index,
                        row_identifier=row_identifier,
                        recovered=True,
                    )
                new_value = result.anonymized_value

            row[column] = new_value
            produced[column] = new_value
            if new_value != value:
                changed = True
                touched.add(column)

        return changed

    @staticmethod
    def _row_identifier(table: RelationalTable, original: Dict[str, Any]) -> Any:
        values = [original[c] for c in table.primary_key if c in original]
        if not values:
            return None
        return values[0] if len(values) == 1 else tuple(values)

    def _build_statistics(self, outcomes) -> RelationshipStats:
        stats = self.relationship_manager.get_statistics()
        rewritten: Set[Tuple[str, str]] = set()
        for outcome in outcomes:
            rewritten |= outcome.rewritten_relationships
            stats.identifiers_remapped += outcome.identifiers_remapped
        stats.relationships_processed = len(rewritten)
        return stats
