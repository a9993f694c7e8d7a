import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from uuid import uuid4

# Point the app at a throwaway sqlite file and eager Celery before any
# rhetor module reads its configuration.
_TMP = Path(tempfile.mkdtemp(prefix="rhetor-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'rhetor.db'}"
os.environ["STORAGE_ROOT"] = str(_TMP / "storage")
os.environ["URL_SIGNING_SECRET"] = "test-secret"
os.environ["PUBLIC_BASE_URL"] = "http://testserver/api/v1"
os.environ["DASHBOARD_DATA_MODE"] = "live"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

import pytest
from fastapi.testclient import TestClient

from rhetor.models import (
    Cohort,
    Pod,
    PodMembership,
    PracticeSession,
    Review,
    ReviewQueueItem,
    RhetorUser,
)
from rhetor.models.database import Base, SessionLocal, engine
from rhetor.services.auth import issue_access_token


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    shutil.rmtree(_TMP / "storage", ignore_errors=True)
    yield SessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from rhetor.main import app

    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(pseudonym=None, credits=0, goals=("clarity",)):
        user_id = str(uuid4())
        with SessionLocal() as session:
            session.add(
                RhetorUser(
                    id=user_id,
                    pseudonym=pseudonym or f"user_{user_id[:8]}",
                    native_language="English",
                    profession_level="student",
                    goals=list(goals) if goals is not None else None,
                    credits=credits,
                )
            )
            session.commit()
        return user_id

    return _make


@pytest.fixture
def make_cohort(db):
    def _make(focus_area="Interview Prep", is_active=True, created_at=None):
        cohort_id = str(uuid4())
        with SessionLocal() as session:
            session.add(
                Cohort(
                    id=cohort_id,
                    name=focus_area,
                    focus_area=focus_area,
                    is_active=is_active,
                    created_at=created_at or datetime.utcnow(),
                )
            )
            session.commit()
        return cohort_id

    return _make


@pytest.fixture
def make_pod(db):
    def _make(cohort_id, label=None, capacity=30, created_at=None):
        pod_id = str(uuid4())
        with SessionLocal() as session:
            session.add(
                Pod(
                    id=pod_id,
                    cohort_id=cohort_id,
                    label=label or f"pod-{pod_id[:8]}",
                    capacity=capacity,
                    created_at=created_at or datetime.utcnow(),
                )
            )
            session.commit()
        return pod_id

    return _make


@pytest.fixture
def join_pod(db):
    def _join(user_id, pod_id):
        with SessionLocal() as session:
            session.add(PodMembership(pod_id=pod_id, user_id=user_id))
            session.commit()

    return _join


@pytest.fixture
def member(make_user, make_cohort, make_pod, join_pod):
    """A user with a profile and one active pod membership."""
    user_id = make_user()
    cohort_id = make_cohort()
    pod_id = make_pod(cohort_id)
    join_pod(user_id, pod_id)
    return {"user_id": user_id, "cohort_id": cohort_id, "pod_id": pod_id}


@pytest.fixture
def make_session(db):
    def _make(user_id, pod_id, submitted_at=None, reviews=0, session_type="prompt", status="ready"):
        session_id = str(uuid4())
        with SessionLocal() as session:
            session.add(
                PracticeSession(
                    id=session_id,
                    user_id=user_id,
                    pod_id=pod_id,
                    session_type=session_type,
                    focus_tags=["clarity"],
                    audio_path=f"{user_id}/{session_id}.m4a",
                    status=status,
                    submitted_at=submitted_at or datetime.utcnow(),
                )
            )
            for _ in range(reviews):
                session.add(Review(session_id=session_id, reviewer_id=str(uuid4())))
            session.commit()
        return session_id

    return _make


@pytest.fixture
def queue_review(db):
    def _queue(session_id, reviewer_id, status="pending"):
        with SessionLocal() as session:
            session.add(
                ReviewQueueItem(
                    session_id=session_id,
                    assigned_reviewer_id=reviewer_id,
                    status=status,
                )
            )
            session.commit()

    return _queue


@pytest.fixture
def auth_headers(db):
    def _headers(user_id):
        return {"Authorization": f"Bearer {issue_access_token(user_id)}"}

    return _headers
