#!/usr/bin/env python3
"""
Quick Start Script - Demonstrates relational-anonymizer core features

This script anonymizes a small users / lofts / reservations snapshot and
shows that every foreign key still resolves after the run.
"""

from relational_anonymizer import (
    AnonymizationConfig,
    AnonymizationOrchestrator,
    ForeignKeyRelationship,
    RelationalTable,
)


def build_tables():
    users = RelationalTable(
        table_name="users",
        rows=[
            {"id": 1, "name": "Amina Benali", "email": "amina@gmail.com", "phone": "0551234567"},
            {"id": 2, "name": "Karim Haddad", "email": "karim@yahoo.fr", "phone": "0667654321"},
        ],
    )
    lofts = RelationalTable(
        table_name="lofts",
        rows=[
            {"id": 10, "owner_id": 1, "address": "12 Rue Larbi Ben M'hidi, Alger", "price_per_night": 8500},
            {"id": 11, "owner_id": 2, "address": "4 Boulevard de l'ALN, Oran", "price_per_night": 12000},
        ],
        relationships=[ForeignKeyRelationship("lofts", "owner_id", "users", "id")],
    )
    reservations = RelationalTable(
        table_name="reservations",
        rows=[
            {"id": 100, "loft_id": 10, "user_id": 2, "total_amount": 25500, "guest_email": "karim@yahoo.fr"},
            {"id": 101, "loft_id": 11, "user_id": 1, "total_amount": 36000, "guest_email": "amina@gmail.com"},
        ],
        relationships=[
            ForeignKeyRelationship("reservations", "loft_id", "lofts", "id"),
            ForeignKeyRelationship("reservations", "user_id", "users", "id"),
        ],
    )
    return [users, lofts, reservations]


def main():
    print("=" * 60)
    print("Relational Anonymizer v1.0 - Quick Start Demo")
    print("=" * 60)
    print()

    tables = build_tables()
    config = AnonymizationConfig(
        financial_ranges={
            "price": {"min": 5000, "max": 20000},
            "total": {"min": 10000, "max": 100000},
        },
        seed=42,
    )

    print("Anonymizing 3 tables...\n")
    orchestrator = AnonymizationOrchestrator(config)
    result = orchestrator.anonymize_dataset(tables)

    print(result.format_summary())
    print()

    # Demo 1: Anonymized rows
    print("=" * 60)
    print("Demo 1: Anonymized rows")
    print("=" * 60)
    for table in tables:
        print(f"\n  {table.table_name}:")
        for row in table.rows:
            print(f"    {row}")
    print()

    # Demo 2: Foreign keys still resolve
    print("=" * 60)
    print("Demo 2: Referential integrity")
    print("=" * 60)
    report = orchestrator.relationship_manager.validate_referential_integrity(tables)
    print(f"\n  Valid: {report.is_valid}")
    for message in report.errors:
        print(f"  - {message}")
    print()

    # Demo 3: Identity mappings
    print("=" * 60)
    print("Demo 3: Identity mappings")
    print("=" * 60)
    for column, mapping in orchestrator.relationship_manager.export_mappings().items():
        print(f"\n  {column}:")
        for original, anonymized in mapping.items():
            print(f"    {original} -> {anonymized}")
    print()


if __name__ == "__main__":
    main()
