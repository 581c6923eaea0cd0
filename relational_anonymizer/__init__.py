"""
Relational Anonymizer v1.0

Anonymize multi-table relational snapshots containing personal and financial
data, while keeping every declared foreign key resolvable.

Example:
    >>> from relational_anonymizer import AnonymizationOrchestrator, RelationalTable
    >>> orchestrator = AnonymizationOrchestrator()
    >>> result = orchestrator.anonymize_dataset(tables)
    >>> print(result.format_summary())
"""

from relational_anonymizer.version import __version__, __version_info__

__author__ = "Relational Anonymizer Contributors"

from relational_anonymizer.engine.core_engine import (
    BatchResult,
    CoreAnonymizationEngine,
    detect_data_type,
)
from relational_anonymizer.engine.orchestrator import AnonymizationOrchestrator
from relational_anonymizer.exceptions import (
    AnonymizationError,
    ConfigurationError,
    DanglingReferenceError,
    FieldTransformError,
)
from relational_anonymizer.generator.fake_data_generator import (
    FakeDataGenerator,
    FakeDataOptions,
)
from relational_anonymizer.graph.table_dependency_graph import TableDependencyGraph
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
from relational_anonymizer.presets import loft_platform_relationships
from relational_anonymizer.registry.relationship_manager import RelationshipManager
from relational_anonymizer.utils.error_collector import ErrorCollector

__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    # Main entry point
    "AnonymizationOrchestrator",
    # Configuration
    "AnonymizationConfig",
    "FinancialRange",
    "FieldConfig",
    # Data models
    "RelationalTable",
    "ForeignKeyRelationship",
    "RelationshipType",
    "AnonymizationContext",
    "AnonymizationType",
    "AnonymizedValue",
    "DataType",
    # Results
    "RunResult",
    "RunError",
    "TableReport",
    "TableStatus",
    "RelationshipStats",
    "IntegrityReport",
    # Components
    "RelationshipManager",
    "CoreAnonymizationEngine",
    "BatchResult",
    "FakeDataGenerator",
    "FakeDataOptions",
    "TableDependencyGraph",
    "ErrorCollector",
    "detect_data_type",
    # Presets
    "loft_platform_relationships",
    # Exceptions
    "AnonymizationError",
    "ConfigurationError",
    "DanglingReferenceError",
    "FieldTransformError",
]
