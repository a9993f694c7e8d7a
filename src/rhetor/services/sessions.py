from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import exists, or_, select
from sqlalchemy.exc import SQLAlchemyError

from rhetor.errors import DataSourceError, ForbiddenError, ValidationError
from rhetor.models.cohort import PodMembership
from rhetor.models.database import SessionLocal
from rhetor.models.review import ReviewQueueItem
from rhetor.models.requests import AudioUrlRequest, CreateSessionRequest
from rhetor.models.schemas import CreatedSession, SignedAudioUrl
from rhetor.models.session import PracticeSession
from rhetor.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

# failed is terminal; every other move must go forward.
_STATUS_TRANSITIONS = {
    "recorded": {"processing", "failed"},
    "processing": {"ready", "failed"},
    "ready": set(),
    "failed": set(),
}


def advance_status(session_row: PracticeSession, new_status: str) -> None:
    allowed = _STATUS_TRANSITIONS.get(session_row.status, set())
    if new_status not in allowed:
        raise ValueError(f"Illegal session status change {session_row.status} -> {new_status}")
    session_row.status = new_status
    session_row.updated_at = datetime.utcnow()


def _resolve_pod_id(session, user_id: str, requested: str) -> str:
    query = select(PodMembership.pod_id).where(
        PodMembership.user_id == user_id,
        PodMembership.left_at.is_(None),
    )
    if requested:
        membership = session.execute(
            query.where(PodMembership.pod_id == requested).limit(1)
        ).scalar_one_or_none()
        if membership is None:
            raise ValidationError("pod_id is not one of your active pods")
        return requested

    membership = session.execute(
        query.order_by(PodMembership.joined_at.desc()).limit(1)
    ).scalar_one_or_none()
    if membership is None:
        raise ValidationError(
            "No active pod membership. Complete onboarding cohort assignment first."
        )
    return membership


def create_session(user_id: str, request: CreateSessionRequest, audio_bucket: str) -> CreatedSession:
    session_type = request.session_type
    focus_tags = request.focus_tags
    ext = request.audio_ext
    requested_pod = request.pod_id or ""

    session_id = str(uuid4())
    audio_path = f"{user_id}/{session_id}.{ext}"

    try:
        with SessionLocal() as session:
            pod_id = _resolve_pod_id(session, user_id, requested_pod)
            row = PracticeSession(
                id=session_id,
                user_id=user_id,
                pod_id=pod_id,
                session_type=session_type,
                focus_tags=focus_tags,
                audio_path=audio_path,
                status="recorded",
                submitted_at=datetime.utcnow(),
            )
            session.add(row)
            session.commit()
    except SQLAlchemyError as exc:
        raise DataSourceError("Failed to create session", details=str(exc)) from exc

    logger.info("Created %s session %s in pod %s", session_type, session_id, pod_id)
    return CreatedSession(
        session_id=row.id,
        pod_id=row.pod_id,
        session_type=row.session_type,
        focus_tags=tuple(row.focus_tags),
        audio_bucket=audio_bucket,
        audio_path=row.audio_path,
        status=row.status,
        submitted_at=row.submitted_at,
        next={"upload": {"bucket": audio_bucket, "path": row.audio_path}},
    )


def _visible_session_query(user_id: str, session_id: str):
    assigned = exists().where(
        ReviewQueueItem.session_id == PracticeSession.id,
        ReviewQueueItem.assigned_reviewer_id == user_id,
    )
    return select(PracticeSession.id, PracticeSession.audio_path).where(
        PracticeSession.id == session_id,
        or_(PracticeSession.user_id == user_id, assigned),
    )


def get_session_audio_url(
    user_id: str,
    request: AudioUrlRequest,
    storage: ObjectStorage,
    audio_bucket: str,
) -> SignedAudioUrl:
    session_id = request.session_id
    expires_in = request.expires_in

    try:
        with SessionLocal() as session:
            row = session.execute(_visible_session_query(user_id, session_id)).first()
    except SQLAlchemyError as exc:
        raise DataSourceError("Failed to load session", details=str(exc)) from exc

    if row is None:
        raise ForbiddenError("Forbidden")

    signed_url = storage.create_signed_url(audio_bucket, row.audio_path, expires_in)
    return SignedAudioUrl(
        session_id=row.id,
        audio_path=row.audio_path,
        expires_in=expires_in,
        signed_url=signed_url,
    )


def find_session_id_by_audio_path(audio_path: str) -> str | None:
    with SessionLocal() as session:
        return session.execute(
            select(PracticeSession.id).where(PracticeSession.audio_path == audio_path)
        ).scalar_one_or_none()
