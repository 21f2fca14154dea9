"""Order intake importer: spreadsheet export -> reconcile -> upsert."""

__version__ = "0.1.0"
