"""Immutable value objects exchanged between the backend and the client core."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

SessionType = Literal["prompt", "freeform", "flash_notes"]
SessionStatus = Literal["recorded", "processing", "ready", "failed"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Profile(_Frozen):
    pseudonym: str
    credits: int
    goals: tuple[str, ...] = ()


class SessionSummary(_Frozen):
    id: str
    session_type: SessionType
    submitted_at: datetime
    status: SessionStatus
    memory_score: float | None = None
    review_count: int = 0


class DashboardViewModel(_Frozen):
    profile: Profile
    pending_review_count: int
    sessions_awaiting_feedback: int
    recent_sessions: tuple[SessionSummary, ...] = ()


class UploadTarget(_Frozen):
    bucket: str
    path: str


class NextStep(_Frozen):
    upload: UploadTarget


class CreatedSession(_Frozen):
    session_id: str
    pod_id: str
    session_type: SessionType
    focus_tags: tuple[str, ...]
    audio_bucket: str
    audio_path: str
    status: SessionStatus
    submitted_at: datetime
    next: NextStep

    @property
    def audio_ext(self) -> str:
        return self.audio_path.rsplit(".", 1)[-1]


class PodAssignment(_Frozen):
    user_id: str
    cohort_id: str
    pod_id: str
    pod_label: str


class SignedAudioUrl(_Frozen):
    session_id: str
    audio_path: str
    expires_in: int
    signed_url: str
