"""
Utility modules for relational anonymization.
"""

from relational_anonymizer.utils.error_collector import ErrorCollector
from relational_anonymizer.utils.text import ascii_slug, digit_count

__all__ = [
    "ErrorCollector",
    "ascii_slug",
    "digit_count",
]
