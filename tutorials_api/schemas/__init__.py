"""
Public Pydantic schemas used by FastAPI routes and tests.

Includes the tutorial read/write models and common reusable models such as the
page envelope and standard responses.
"""

from .common import MessageResponse, PageResponse  # noqa: F401
