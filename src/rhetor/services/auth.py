from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from rhetor.errors import AuthError
from rhetor.models.auth_token import AuthToken
from rhetor.models.database import SessionLocal

BEARER_PREFIX = "Bearer "


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_access_token(user_id: str, ttl: timedelta | None = None) -> str:
    token = secrets.token_urlsafe(32)
    expires_at = datetime.utcnow() + ttl if ttl is not None else None
    with SessionLocal() as session:
        session.add(
            AuthToken(token_hash=_hash_token(token), user_id=user_id, expires_at=expires_at)
        )
        session.commit()
    return token


def authenticate(authorization: str | None) -> str:
    """Resolve an ``Authorization`` header to the calling user's id."""
    header = authorization or ""
    if not header.startswith(BEARER_PREFIX):
        raise AuthError("Missing bearer token")

    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Unauthorized")

    try:
        with SessionLocal() as session:
            record = session.execute(
                select(AuthToken).where(AuthToken.token_hash == _hash_token(token))
            ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise AuthError("Unauthorized", details=str(exc)) from exc

    if record is None:
        raise AuthError("Unauthorized")
    if record.expires_at is not None and record.expires_at <= datetime.utcnow():
        raise AuthError("Unauthorized")
    return record.user_id
