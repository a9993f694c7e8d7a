"""Request bodies accepted by the /api/v1 endpoints."""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from rhetor.models.session import SESSION_TYPES

ALLOWED_AUDIO_EXTENSIONS = ("m4a", "aac", "mp3", "wav", "caf", "ogg")
DEFAULT_AUDIO_EXTENSION = "m4a"
MIN_FOCUS_TAGS = 1
MAX_FOCUS_TAGS = 2
SIGNED_URL_MIN_SECONDS = 30
SIGNED_URL_MAX_SECONDS = 600
SIGNED_URL_DEFAULT_SECONDS = 120

PROFESSION_LEVELS = ("student", "early_career", "mid_level", "senior", "executive")
GOAL_TAGS = ("clarity", "confidence", "structure", "persuasion", "memory", "fluency")
MAX_GOALS = 3
_PSEUDONYM_RE = re.compile(r"^[\w\-.]+$")


def _strip_or_none(v: Any) -> Any:
    if isinstance(v, str):
        return v.strip() or None
    return v


class CreateSessionRequest(BaseModel):
    session_type: str = Field("", validate_default=True)
    focus_tags: list[str] = Field(default_factory=list, validate_default=True)
    audio_ext: str = DEFAULT_AUDIO_EXTENSION
    pod_id: Optional[str] = None

    @field_validator("session_type")
    @classmethod
    def validate_session_type(cls, v: str) -> str:
        v = v.strip()
        if v not in SESSION_TYPES:
            raise ValueError("session_type must be one of: prompt, freeform, flash_notes")
        return v

    @field_validator("focus_tags", mode="before")
    @classmethod
    def validate_focus_tags(cls, v: Any) -> list[str]:
        if v is None:
            v = []
        if not isinstance(v, list) or not all(isinstance(tag, str) for tag in v):
            raise ValueError("focus_tags must contain 1 to 2 values")
        tags = [tag.strip() for tag in v if tag.strip()]
        if not MIN_FOCUS_TAGS <= len(tags) <= MAX_FOCUS_TAGS:
            raise ValueError("focus_tags must contain 1 to 2 values")
        return tags

    @field_validator("audio_ext", mode="before")
    @classmethod
    def normalise_audio_ext(cls, v: Any) -> str:
        if v is None:
            return DEFAULT_AUDIO_EXTENSION
        if not isinstance(v, str):
            raise ValueError("audio_ext must be a string")
        ext = re.sub(r"[^a-z0-9]", "", v.lower())
        if ext not in ALLOWED_AUDIO_EXTENSIONS:
            raise ValueError("audio_ext must be one of: m4a, aac, mp3, wav, caf, ogg")
        return ext

    @field_validator("pod_id", mode="before")
    @classmethod
    def strip_pod_id(cls, v: Any) -> Any:
        return _strip_or_none(v)


class AssignToPodRequest(BaseModel):
    cohort_id: Optional[str] = None
    focus_area: Optional[str] = None

    @field_validator("cohort_id", "focus_area", mode="before")
    @classmethod
    def strip_blank(cls, v: Any) -> Any:
        return _strip_or_none(v)

    @model_validator(mode="after")
    def require_target(self) -> "AssignToPodRequest":
        if not self.cohort_id and not self.focus_area:
            raise ValueError("Provide cohort_id or focus_area")
        return self


class AudioUrlRequest(BaseModel):
    session_id: str = Field("", validate_default=True)
    expires_in: int = SIGNED_URL_DEFAULT_SECONDS

    @field_validator("session_id")
    @classmethod
    def require_session_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("session_id is required")
        return v

    @field_validator("expires_in", mode="before")
    @classmethod
    def clamp_expires_in(cls, v: Any) -> int:
        if v is None:
            return SIGNED_URL_DEFAULT_SECONDS
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("expires_in must be a number")
        return int(max(SIGNED_URL_MIN_SECONDS, min(SIGNED_URL_MAX_SECONDS, v)))


class ProfileRequest(BaseModel):
    pseudonym: str
    native_language: str
    profession_level: str
    goals: list[str]

    @field_validator("pseudonym")
    @classmethod
    def validate_pseudonym(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Minimum 3 characters")
        if len(v) > 32:
            raise ValueError("Maximum 32 characters")
        if not _PSEUDONYM_RE.match(v):
            raise ValueError("Letters, numbers, _, -, . only")
        return v

    @field_validator("native_language")
    @classmethod
    def validate_native_language(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("native_language is required")
        return v

    @field_validator("profession_level")
    @classmethod
    def validate_profession_level(cls, v: str) -> str:
        if v not in PROFESSION_LEVELS:
            raise ValueError("Select your experience level")
        return v

    @field_validator("goals")
    @classmethod
    def validate_goals(cls, v: list[str]) -> list[str]:
        if any(goal not in GOAL_TAGS for goal in v):
            raise ValueError(f"goals must be drawn from: {', '.join(GOAL_TAGS)}")
        if not v:
            raise ValueError("Select at least one goal")
        if len(v) > MAX_GOALS:
            raise ValueError("Select up to 3 goals")
        return list(dict.fromkeys(v))
