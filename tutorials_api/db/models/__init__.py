"""
ORM models for the tutorials domain.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .tutorial import Tutorial  # noqa: F401
