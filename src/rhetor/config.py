from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_ROOT_DIR = Path(__file__).resolve().parents[2]
_ENV_PATH = _ROOT_DIR / ".env"
load_dotenv(_ENV_PATH)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_api_base_url() -> str:
    return os.getenv("API_BASE_URL", "http://127.0.0.1:8000/api/v1")


def get_public_base_url() -> str:
    return os.getenv("PUBLIC_BASE_URL", get_api_base_url()).rstrip("/")


def get_database_url() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    user = os.getenv("POSTGRES_USER", "rhetor")
    password = os.getenv("POSTGRES_PASSWORD", "rhetor")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB", "rhetor")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db_name}"


def get_storage_root() -> Path:
    default = _ROOT_DIR / "storage"
    return Path(os.getenv("STORAGE_ROOT", str(default)))


def get_audio_bucket() -> str:
    return os.getenv("AUDIO_BUCKET", "rhetor-audio")


def get_url_signing_secret() -> str:
    return os.getenv("URL_SIGNING_SECRET", "change-me")


def get_dashboard_data_mode() -> str:
    return os.getenv("DASHBOARD_DATA_MODE", "live").strip().lower()


def get_celery_broker_url() -> str:
    return os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")


def get_celery_result_backend() -> str:
    return os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")


def get_celery_task_always_eager() -> bool:
    return _get_bool("CELERY_TASK_ALWAYS_EAGER", False)


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
