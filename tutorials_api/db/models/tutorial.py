from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Integer, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from tutorials_api.db.base import Base, BigIntPkMixin, CreatedAtMixin


class Tutorial(BigIntPkMixin, CreatedAtMixin, Base):
    """A published or draft tutorial with a difficulty level."""
    __tablename__ = "tutorials"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    published: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false(), index=True
    )

    def __repr__(self) -> str:
        return (
            f"Tutorial(id={self.id!r}, title={self.title!r}, level={self.level!r}, "
            f"published={self.published!r})"
        )
