"""Backend access: upsert, reads, maintenance queries."""
