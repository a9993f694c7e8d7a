from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

from rhetor.config import (
    get_audio_bucket,
    get_dashboard_data_mode,
    get_public_base_url,
    get_storage_root,
    get_url_signing_secret,
)


class Settings(BaseModel):
    AUDIO_BUCKET: str
    STORAGE_ROOT: Path
    URL_SIGNING_SECRET: str
    PUBLIC_BASE_URL: str
    DASHBOARD_DATA_MODE: Literal["live", "fixture"]

    model_config = ConfigDict(frozen=True)


def load_settings() -> Settings:
    return Settings(
        AUDIO_BUCKET=get_audio_bucket(),
        STORAGE_ROOT=get_storage_root(),
        URL_SIGNING_SECRET=get_url_signing_secret(),
        PUBLIC_BASE_URL=get_public_base_url(),
        DASHBOARD_DATA_MODE=get_dashboard_data_mode(),
    )


settings = load_settings()
