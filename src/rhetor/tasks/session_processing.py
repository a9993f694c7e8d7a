from __future__ import annotations

import logging

from sqlalchemy import select

from rhetor.core.celery_app import celery_app
from rhetor.models.database import SessionLocal
from rhetor.models.session import PracticeSession
from rhetor.services.sessions import advance_status
from rhetor.services.storage import build_storage
from rhetor.settings import settings

logger = logging.getLogger(__name__)


@celery_app.task(name="rhetor.tasks.session_processing.process_uploaded_session")
def process_uploaded_session(session_id: str) -> dict[str, object]:
    storage = build_storage(settings)
    with SessionLocal() as session:
        row = session.execute(
            select(PracticeSession).where(PracticeSession.id == session_id)
        ).scalar_one_or_none()
        if row is None:
            raise RuntimeError("Session not found")
        if row.status != "recorded":
            return {"session_id": session_id, "status": row.status}

        advance_status(row, "processing")
        session.commit()

        if storage.exists(settings.AUDIO_BUCKET, row.audio_path):
            advance_status(row, "ready")
        else:
            logger.warning("Session %s has no audio object at %s", session_id, row.audio_path)
            advance_status(row, "failed")
        session.commit()
        status = row.status

    return {"session_id": session_id, "status": status}
