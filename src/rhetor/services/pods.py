from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from rhetor.errors import DataSourceError, NotFoundError, ValidationError
from rhetor.models.cohort import Cohort, Pod, PodMembership
from rhetor.models.database import SessionLocal
from rhetor.models.requests import AssignToPodRequest
from rhetor.models.schemas import PodAssignment
from rhetor.models.user import RhetorUser

logger = logging.getLogger(__name__)


def _new_pod_label() -> str:
    return f"pod-{uuid4().hex[:8]}"


def _require_profile(session, user_id: str) -> None:
    profile = session.execute(
        select(RhetorUser.id).where(RhetorUser.id == user_id)
    ).scalar_one_or_none()
    if profile is None:
        raise ValidationError("Profile not found. Create rhetor_users row first.")


def _resolve_cohort_id(session, request: AssignToPodRequest) -> str:
    if request.cohort_id:
        return request.cohort_id

    resolved = session.execute(
        select(Cohort.id)
        .where(Cohort.focus_area == request.focus_area, Cohort.is_active.is_(True))
        .order_by(Cohort.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()
    if resolved is None:
        raise NotFoundError("No active cohort found for focus_area")
    return resolved


def _assign(session, user_id: str, cohort_id: str) -> Pod:
    """Place ``user_id`` in a pod of ``cohort_id``.

    The cohort row is locked for the duration so two concurrent assignments
    cannot both take the last seat of a pod.
    """
    cohort = session.execute(
        select(Cohort).where(Cohort.id == cohort_id).with_for_update()
    ).scalar_one_or_none()
    if cohort is None or not cohort.is_active:
        raise NotFoundError("Cohort not found")

    active = session.execute(
        select(PodMembership, Pod)
        .join(Pod, Pod.id == PodMembership.pod_id)
        .where(PodMembership.user_id == user_id, PodMembership.left_at.is_(None))
    ).all()
    for membership, pod in active:
        if pod.cohort_id == cohort_id:
            return pod
    now = datetime.utcnow()
    for membership, _pod in active:
        membership.left_at = now

    member_counts = (
        select(PodMembership.pod_id, func.count(PodMembership.id).label("members"))
        .where(PodMembership.left_at.is_(None))
        .group_by(PodMembership.pod_id)
        .subquery()
    )
    candidates = session.execute(
        select(Pod, func.coalesce(member_counts.c.members, 0))
        .outerjoin(member_counts, member_counts.c.pod_id == Pod.id)
        .where(Pod.cohort_id == cohort_id)
        .order_by(Pod.created_at.asc(), Pod.id.asc())
    ).all()
    target = next((pod for pod, members in candidates if members < pod.capacity), None)
    if target is None:
        target = Pod(id=str(uuid4()), cohort_id=cohort_id, label=_new_pod_label())
        session.add(target)
        session.flush()
        logger.info("Opened pod %s (%s) in cohort %s", target.label, target.id, cohort_id)

    session.add(PodMembership(pod_id=target.id, user_id=user_id, joined_at=now))
    return target


def assign_to_pod(user_id: str, request: AssignToPodRequest) -> PodAssignment:
    try:
        with SessionLocal() as session:
            _require_profile(session, user_id)
            cohort_id = _resolve_cohort_id(session, request)
            pod = _assign(session, user_id, cohort_id)
            session.commit()
    except SQLAlchemyError as exc:
        raise DataSourceError("Assignment failed", details=str(exc)) from exc

    logger.info("Assigned user %s to pod %s", user_id, pod.label)
    return PodAssignment(
        user_id=user_id,
        cohort_id=pod.cohort_id,
        pod_id=pod.id,
        pod_label=pod.label,
    )
