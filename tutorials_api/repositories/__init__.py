"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each entity. Queries are built
from the structured query model in ``query``; literal SQL goes through
``RawQuery`` and cannot be re-sorted or paged.
"""
