from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from rhetor.config import get_database_url

_DATABASE_URL = get_database_url()
_CONNECT_ARGS = (
    {"check_same_thread": False} if _DATABASE_URL.startswith("sqlite") else {}
)

Base = declarative_base()
engine = create_engine(_DATABASE_URL, future=True, connect_args=_CONNECT_ARGS)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
)
