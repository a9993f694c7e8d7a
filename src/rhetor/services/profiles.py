from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rhetor.errors import DataSourceError, ValidationError
from rhetor.models.database import SessionLocal
from rhetor.models.requests import ProfileRequest
from rhetor.models.user import RhetorUser


def save_profile(user_id: str, request: ProfileRequest) -> dict[str, object]:
    try:
        with SessionLocal() as session:
            user = session.execute(
                select(RhetorUser).where(RhetorUser.id == user_id)
            ).scalar_one_or_none()
            if user is None:
                user = RhetorUser(id=user_id, credits=0)
                session.add(user)
            user.pseudonym = request.pseudonym
            user.native_language = request.native_language
            user.profession_level = request.profession_level
            user.goals = request.goals
            user.updated_at = datetime.utcnow()
            session.commit()
    except IntegrityError as exc:
        raise ValidationError("Pseudonym is already taken") from exc
    except SQLAlchemyError as exc:
        raise DataSourceError("Failed to save profile", details=str(exc)) from exc

    return {"id": user_id, **request.model_dump()}
