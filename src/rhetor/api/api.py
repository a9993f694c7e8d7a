from __future__ import annotations

import asyncio
import logging

from celery.exceptions import CeleryError
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import FileResponse
from kombu.exceptions import OperationalError as BrokerError

from rhetor.errors import ForbiddenError
from rhetor.models.requests import (
    AssignToPodRequest,
    AudioUrlRequest,
    CreateSessionRequest,
    ProfileRequest,
)
from rhetor.services.auth import authenticate
from rhetor.services.dashboard import DashboardAggregator, build_dashboard_source
from rhetor.services.pods import assign_to_pod
from rhetor.services.profiles import save_profile
from rhetor.services.sessions import (
    create_session,
    find_session_id_by_audio_path,
    get_session_audio_url,
)
from rhetor.services.storage import ObjectStorage, build_storage, content_type_for
from rhetor.settings import settings
from rhetor.tasks.session_processing import process_uploaded_session

logger = logging.getLogger(__name__)

router = APIRouter()


def get_storage() -> ObjectStorage:
    return build_storage(settings)


def get_aggregator() -> DashboardAggregator:
    return DashboardAggregator(build_dashboard_source(settings.DASHBOARD_DATA_MODE))


async def current_user_id(authorization: str | None = Header(default=None)) -> str:
    return await asyncio.to_thread(authenticate, authorization)


@router.post("/create-session")
async def create_session_endpoint(
    body: CreateSessionRequest, user_id: str = Depends(current_user_id)
) -> dict[str, object]:
    created = await asyncio.to_thread(create_session, user_id, body, settings.AUDIO_BUCKET)
    return created.model_dump(mode="json")


@router.post("/assign-to-pod")
async def assign_to_pod_endpoint(
    body: AssignToPodRequest, user_id: str = Depends(current_user_id)
) -> dict[str, object]:
    assignment = await asyncio.to_thread(assign_to_pod, user_id, body)
    return assignment.model_dump(mode="json")


@router.post("/get-session-audio-url")
async def get_session_audio_url_endpoint(
    body: AudioUrlRequest,
    user_id: str = Depends(current_user_id),
    storage: ObjectStorage = Depends(get_storage),
) -> dict[str, object]:
    signed = await asyncio.to_thread(
        get_session_audio_url, user_id, body, storage, settings.AUDIO_BUCKET
    )
    return signed.model_dump(mode="json")


@router.post("/profile")
async def save_profile_endpoint(
    body: ProfileRequest, user_id: str = Depends(current_user_id)
) -> dict[str, object]:
    return await asyncio.to_thread(save_profile, user_id, body)


@router.get("/dashboard")
async def dashboard_endpoint(
    user_id: str = Depends(current_user_id),
    aggregator: DashboardAggregator = Depends(get_aggregator),
) -> dict[str, object]:
    view = await aggregator.fetch_dashboard(user_id)
    return view.model_dump(mode="json")


@router.put("/storage/{bucket}/{object_path:path}")
async def upload_object(
    bucket: str,
    object_path: str,
    request: Request,
    user_id: str = Depends(current_user_id),
    storage: ObjectStorage = Depends(get_storage),
) -> dict[str, str]:
    owner = object_path.strip("/").split("/", 1)[0]
    if owner != user_id:
        raise ForbiddenError("Uploads are limited to your own folder")

    data = await request.body()
    key = await asyncio.to_thread(storage.upload, bucket, object_path, data)

    session_id = await asyncio.to_thread(find_session_id_by_audio_path, object_path)
    if session_id is not None:
        try:
            await asyncio.to_thread(process_uploaded_session.delay, session_id)
        except (BrokerError, CeleryError) as exc:
            # The object is stored; the session stays recorded until reprocessed.
            logger.error("Failed to queue processing for session %s: %s", session_id, exc)

    return {
        "Key": key,
        "content_type": request.headers.get("content-type") or content_type_for(object_path),
    }


@router.get("/storage/sign/{bucket}/{object_path:path}")
async def download_signed_object(
    bucket: str,
    object_path: str,
    expires: int,
    token: str,
    storage: ObjectStorage = Depends(get_storage),
) -> FileResponse:
    storage.verify_signature(bucket, object_path, expires, token)
    path = await asyncio.to_thread(storage.open_path, bucket, object_path)
    return FileResponse(path, media_type=content_type_for(object_path))
