"""
Core application utilities for settings, logging, errors and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with correlation ids
- The repository error taxonomy
- Dependency helpers (DB session, repositories, page requests)
"""
