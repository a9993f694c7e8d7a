from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rhetor.models.database import Base


class RhetorUser(Base):
    __tablename__ = "rhetor_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    pseudonym: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    native_language: Mapped[str | None] = mapped_column(String(64), nullable=True)
    profession_level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    goals: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    credits: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
