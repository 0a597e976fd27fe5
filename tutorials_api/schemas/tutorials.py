from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TutorialCreate(BaseModel):
    """Payload to create a tutorial."""
    title: str = Field(..., min_length=1, description="Tutorial title")
    description: Optional[str] = Field(None, description="Free-text description")
    level: int = Field(0, ge=0, description="Difficulty level")
    published: bool = Field(False, description="Whether the tutorial is visible")
    created_at: Optional[datetime] = Field(
        None, description="Creation timestamp; defaults to now when omitted"
    )


class TutorialRead(BaseModel):
    """Tutorial read model."""
    id: int = Field(..., description="Tutorial id")
    title: str = Field(...)
    description: Optional[str] = Field(None)
    level: int = Field(...)
    published: bool = Field(...)
    created_at: datetime = Field(..., description="Created at")

    class Config:
        from_attributes = True


class PublishResult(BaseModel):
    """Outcome of a publish request."""
    updated: int = Field(..., ge=0, description="Number of tutorials updated")
