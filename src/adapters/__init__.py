"""Infrastructure adapters (database, web)."""
