"""Version information."""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

# Version history
CHANGELOG = """
# Changelog

## v1.0.0

**Relational anonymization**

- Two-phase run: identity mappings first, then field rewrite
- Foreign keys remapped through per-column identity mappings
- Cycle and conflicting-declaration detection before any row is touched
- Optional deadline with skipped-table reporting
- Parallel table processing (max_workers)

**Field strategies**

- Email, phone, name, address, company, description and date generation
- Financial ranges per column pattern, proportional jitter otherwise
- Custom per-column generators
- Recovered field failures reported without failing the run

**Reporting**

- Per-table reports and relationship statistics
- Post-run referential integrity check
- JSON export and tabular summary

### Known Limitations

- Composite foreign keys are declared column by column
- Mappings live in memory for one run unless exported
"""
