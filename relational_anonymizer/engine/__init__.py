"""
Anonymization engine module.

This package contains the CoreAnonymizationEngine class that classifies and
transforms individual field values, and the AnonymizationOrchestrator main
entry point that drives a run over a whole relational dataset.
"""

from relational_anonymizer.engine.core_engine import (
    BatchResult,
    CoreAnonymizationEngine,
    detect_data_type,
)
from relational_anonymizer.engine.orchestrator import (
    AnonymizationOrchestrator,
    ColumnAction,
    ColumnPlan,
)

__all__ = [
    "AnonymizationOrchestrator",
    "BatchResult",
    "ColumnAction",
    "ColumnPlan",
    "CoreAnonymizationEngine",
    "detect_data_type",
]
