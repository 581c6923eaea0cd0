"""
Fake-data generation module.
"""

from relational_anonymizer.generator.fake_data_generator import (
    FINANCIAL_RANGES,
    FakeDataGenerator,
    FakeDataOptions,
)

__all__ = [
    "FINANCIAL_RANGES",
    "FakeDataGenerator",
    "FakeDataOptions",
]
