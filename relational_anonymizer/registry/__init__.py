"""
Registry module for relational anonymization.

This module provides the RelationshipManager, which owns foreign key
declarations and the identity mappings shared by every table of a run.
"""

from relational_anonymizer.registry.relationship_manager import RelationshipManager

__all__ = ["RelationshipManager"]
