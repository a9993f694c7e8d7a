"""Home dashboard aggregation.

The view model is rebuilt from the backing store on every call: profile,
pending review assignments, the five most recent sessions and a feedback
count taken over *all* of the user's sessions. Four reads are independent and
are issued together; the per-session review tally depends on the full id list
and runs after it.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from rhetor.errors import AggregationError, DataSourceError, RhetorError
from rhetor.models.database import SessionLocal
from rhetor.models.review import Review, ReviewQueueItem
from rhetor.models.schemas import DashboardViewModel, Profile, SessionSummary
from rhetor.models.session import PracticeSession
from rhetor.models.user import RhetorUser

logger = logging.getLogger(__name__)

RECENT_SESSION_LIMIT = 5
REVIEWS_FOR_COMPLETION = 2


class DashboardSource(Protocol):
    def fetch_profile(self, user_id: str) -> Profile: ...

    def count_pending_reviews(self, user_id: str) -> int: ...

    def fetch_recent_sessions(self, user_id: str, limit: int) -> list[SessionSummary]: ...

    def fetch_session_ids(self, user_id: str) -> list[str]: ...

    def count_reviews_by_session(self, session_ids: Sequence[str]) -> dict[str, int]: ...


class SqlDashboardSource:
    """Reads dashboard rows through SQLAlchemy, one ORM session per read."""

    def __init__(self, session_factory=SessionLocal) -> None:
        self.session_factory = session_factory

    def _run(self, description: str, query_fn):
        try:
            with self.session_factory() as session:
                return query_fn(session)
        except SQLAlchemyError as exc:
            raise DataSourceError(f"Failed to load {description}", details=str(exc)) from exc

    def fetch_profile(self, user_id: str) -> Profile:
        row = self._run(
            "profile",
            lambda session: session.execute(
                select(RhetorUser.pseudonym, RhetorUser.credits, RhetorUser.goals).where(
                    RhetorUser.id == user_id
                )
            ).first(),
        )
        if row is None:
            raise DataSourceError("Profile not found")
        return Profile(
            pseudonym=row.pseudonym,
            credits=row.credits or 0,
            goals=tuple(row.goals or ()),
        )

    def count_pending_reviews(self, user_id: str) -> int:
        return self._run(
            "review queue",
            lambda session: session.execute(
                select(func.count(ReviewQueueItem.id)).where(
                    ReviewQueueItem.assigned_reviewer_id == user_id,
                    ReviewQueueItem.status == "pending",
                )
            ).scalar_one(),
        )

    def fetch_recent_sessions(self, user_id: str, limit: int) -> list[SessionSummary]:
        query = (
            select(PracticeSession, func.count(Review.id).label("review_count"))
            .outerjoin(Review, Review.session_id == PracticeSession.id)
            .where(PracticeSession.user_id == user_id)
            .group_by(PracticeSession.id)
            .order_by(PracticeSession.submitted_at.desc(), PracticeSession.id.desc())
            .limit(limit)
        )
        rows = self._run("sessions", lambda session: session.execute(query).all())
        return [
            SessionSummary(
                id=row.id,
                session_type=row.session_type,
                submitted_at=row.submitted_at,
                status=row.status,
                memory_score=row.memory_score,
                review_count=review_count,
            )
            for row, review_count in rows
        ]

    def fetch_session_ids(self, user_id: str) -> list[str]:
        return self._run(
            "session ids",
            lambda session: list(
                session.execute(
                    select(PracticeSession.id).where(PracticeSession.user_id == user_id)
                ).scalars()
            ),
        )

    def count_reviews_by_session(self, session_ids: Sequence[str]) -> dict[str, int]:
        reviewed = self._run(
            "reviews",
            lambda session: list(
                session.execute(
                    select(Review.session_id).where(Review.session_id.in_(list(session_ids)))
                ).scalars()
            ),
        )
        return dict(Counter(reviewed))


class FixtureDashboardSource:
    """Fixed sample data for running the app without a database."""

    def __init__(self, now: datetime | None = None) -> None:
        now = now or datetime.utcnow()
        self.profile = Profile(
            pseudonym="sharpedge",
            credits=4,
            goals=("clarity", "confidence", "memory"),
        )
        self.pending_reviews = 2
        self.sessions = [
            SessionSummary(
                id="mock-1",
                session_type="flash_notes",
                submitted_at=now - timedelta(days=1),
                status="ready",
                memory_score=0.72,
                review_count=1,
            ),
            SessionSummary(
                id="mock-2",
                session_type="prompt",
                submitted_at=now - timedelta(days=2),
                status="ready",
                review_count=2,
            ),
            SessionSummary(
                id="mock-3",
                session_type="freeform",
                submitted_at=now - timedelta(days=5),
                status="ready",
                review_count=2,
            ),
        ]

    def fetch_profile(self, user_id: str) -> Profile:
        return self.profile

    def count_pending_reviews(self, user_id: str) -> int:
        return self.pending_reviews

    def fetch_recent_sessions(self, user_id: str, limit: int) -> list[SessionSummary]:
        ordered = sorted(self.sessions, key=lambda s: s.submitted_at, reverse=True)
        return ordered[:limit]

    def fetch_session_ids(self, user_id: str) -> list[str]:
        return [session.id for session in self.sessions]

    def count_reviews_by_session(self, session_ids: Sequence[str]) -> dict[str, int]:
        wanted = set(session_ids)
        return {s.id: s.review_count for s in self.sessions if s.id in wanted}


def build_dashboard_source(mode: str) -> DashboardSource:
    if mode == "fixture":
        return FixtureDashboardSource()
    if mode == "live":
        return SqlDashboardSource()
    raise ValueError(f"Unknown dashboard data mode: {mode}")


def count_awaiting_feedback(session_ids: Iterable[str], review_counts: dict[str, int]) -> int:
    return sum(
        1 for session_id in session_ids
        if review_counts.get(session_id, 0) < REVIEWS_FOR_COMPLETION
    )


class DashboardAggregator:
    def __init__(self, source: DashboardSource, recent_limit: int = RECENT_SESSION_LIMIT) -> None:
        self.source = source
        self.recent_limit = recent_limit

    async def _read(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except RhetorError:
            raise
        except Exception as exc:
            raise DataSourceError(str(exc) or type(exc).__name__) from exc

    async def fetch_dashboard(self, user_id: str) -> DashboardViewModel:
        profile, pending, recent, session_ids = await asyncio.gather(
            self._read(self.source.fetch_profile, user_id),
            self._read(self.source.count_pending_reviews, user_id),
            self._read(self.source.fetch_recent_sessions, user_id, self.recent_limit),
            self._read(self.source.fetch_session_ids, user_id),
        )

        awaiting = 0
        if session_ids:
            try:
                review_counts = await self._read(self.source.count_reviews_by_session, session_ids)
            except DataSourceError as exc:
                raise AggregationError(exc.message, details=exc.details) from exc
            awaiting = count_awaiting_feedback(session_ids, review_counts)

        recent = sorted(recent, key=lambda s: (s.submitted_at, s.id), reverse=True)
        logger.debug(
            "Dashboard for %s: %d recent, %d awaiting feedback",
            user_id, len(recent), awaiting,
        )
        return DashboardViewModel(
            profile=profile,
            pending_review_count=pending or 0,
            sessions_awaiting_feedback=awaiting,
            recent_sessions=tuple(recent[: self.recent_limit]),
        )
