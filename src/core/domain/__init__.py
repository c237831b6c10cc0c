"""Domain records.

Why:
- Plain, strict data structures (Pydantic v2) live here.
- The domain knows nothing about HTTP, the CLI or the database driver.
"""
