from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the order intake importer.

These are produced by orderdesk.config.loader after schema validation and are
passed explicitly to the services (no module-level config state).
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback configuration.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence over
    these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ManualEntryTables:
    """Table names touched by the manual entry cascading delete, in delete order."""
    notes: str = "manual_entry_notes"
    quote_draft_items: str = "quote_draft_items"
    quote_drafts: str = "quote_drafts"
    entries: str = "manual_entries"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    submissions_table: str = "submissions"
    timezone: str = "UTC"  # tz-aware timestamps are converted here before taking the date
    manual_entry_tables: ManualEntryTables = field(default_factory=ManualEntryTables)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
