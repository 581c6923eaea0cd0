"""
Relationship catalogs for known schemas.

This module provides the foreign key declarations of the loft booking
platform, so that snapshots loaded from it can be anonymized without
declaring every relationship by hand.
"""

from typing import List

from relational_anonymizer.models.relational_table import (
    ForeignKeyRelationship,
    RelationshipType,
)

# (source_table, source_column, target_table, target_column)
_LOFT_PLATFORM_FOREIGN_KEYS = (
    # Loft ownership
    ("lofts", "owner_id", "users", "id"),
    # Reservations
    ("reservations", "loft_id", "lofts", "id"),
    ("reservations", "user_id", "users", "id"),
    # Transactions
    ("transactions", "loft_id", "lofts", "id"),
    ("transactions", "user_id", "users", "id"),
    # Tasks
    ("tasks", "loft_id", "lofts", "id"),
    ("tasks", "assigned_to", "users", "id"),
    # Teams
    ("team_members", "user_id", "users", "id"),
    ("team_members", "team_id", "teams", "id"),
    # Conversations
    ("conversation_participants", "conversation_id", "conversations", "id"),
    ("conversation_participants", "user_id", "users", "id"),
    ("conversation_messages", "conversation_id", "conversations", "id"),
    ("conversation_messages", "sender_id", "users", "id"),
    # Audit and notifications
    ("audit_logs", "user_id", "users", "id"),
    ("notifications", "user_id", "users", "id"),
    ("bill_notifications", "loft_id", "lofts", "id"),
    # Loft content
    ("loft_photos", "loft_id", "lofts", "id"),
    ("availability_calendar", "loft_id", "lofts", "id"),
)


def loft_platform_relationships() -> List[ForeignKeyRelationship]:
    """Return the foreign key catalog of the loft booking platform.

    Example:
        >>> relationships = loft_platform_relationships()
        >>> relationships[0].to_qualified_names()
        ('lofts.owner_id', 'users.id')
    """
    return [
        ForeignKeyRelationship(
            source_table=source_table,
            source_column=source_column,
            target_table=target_table,
            target_column=target_column,
            relationship_type=RelationshipType.MANY_TO_ONE,
        )
        for source_table, source_column, target_table, target_column in (
            _LOFT_PLATFORM_FOREIGN_KEYS
        )
    ]
