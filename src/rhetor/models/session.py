from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rhetor.models.database import Base

SESSION_TYPES = ("prompt", "freeform", "flash_notes")
SESSION_STATUSES = ("recorded", "processing", "ready", "failed")


class PracticeSession(Base):
    __tablename__ = "rhetor_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rhetor_users.id"), index=True
    )
    pod_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rhetor_pods.id"), index=True
    )
    session_type: Mapped[str] = mapped_column(String(32))
    focus_tags: Mapped[list[str]] = mapped_column(JSON)
    audio_path: Mapped[str] = mapped_column(String(512), unique=True)
    status: Mapped[str] = mapped_column(String(32), default="recorded")
    memory_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
