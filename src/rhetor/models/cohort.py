from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rhetor.models.database import Base

POD_CAPACITY = 30


class Cohort(Base):
    __tablename__ = "rhetor_cohorts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    focus_area: Mapped[str] = mapped_column(String(255), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Pod(Base):
    __tablename__ = "rhetor_pods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    cohort_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rhetor_cohorts.id"), index=True
    )
    label: Mapped[str] = mapped_column(String(64))
    capacity: Mapped[int] = mapped_column(Integer, default=POD_CAPACITY)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PodMembership(Base):
    __tablename__ = "rhetor_pod_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pod_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rhetor_pods.id"), index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rhetor_users.id"), index=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    left_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
