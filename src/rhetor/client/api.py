from __future__ import annotations

import logging
from typing import Sequence
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from rhetor.config import get_api_base_url
from rhetor.errors import (
    AuthError,
    DataSourceError,
    DuplicateUpload,
    ForbiddenError,
    NotFoundError,
    RhetorError,
    UploadFailed,
    ValidationError,
)
from rhetor.models.schemas import (
    CreatedSession,
    DashboardViewModel,
    PodAssignment,
    SignedAudioUrl,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0

_STATUS_ERRORS: dict[int, type[RhetorError]] = {
    400: ValidationError,
    401: AuthError,
    403: ForbiddenError,
    404: NotFoundError,
}


def _error_from_response(response: httpx.Response) -> RhetorError:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    message = payload.get("error") or response.reason_phrase or "Request failed"
    error_cls = _STATUS_ERRORS.get(response.status_code, DataSourceError)
    return error_cls(str(message), details=payload.get("details"))


def _parse(model: type[BaseModel], response: httpx.Response):
    try:
        return model.model_validate(response.json())
    except (ValueError, SchemaError) as exc:
        raise DataSourceError("Unexpected response from server", details=str(exc)) from exc


class RhetorApiClient:
    """Async client for the backend functions, storage and dashboard."""

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or get_api_base_url()).rstrip("/")
        self._access_token = access_token
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RhetorApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            return await self._get_client().request(
                method, f"{self.base_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise DataSourceError(f"{method} {path} failed", details=str(exc)) from exc

    async def _post_json(self, path: str, payload: dict[str, object]) -> httpx.Response:
        response = await self._request("POST", path, json=payload)
        if response.status_code != 200:
            raise _error_from_response(response)
        return response

    async def create_session(
        self,
        session_type: str,
        focus_tags: Sequence[str],
        audio_ext: str = "m4a",
        pod_id: str | None = None,
    ) -> CreatedSession:
        payload: dict[str, object] = {
            "session_type": session_type,
            "focus_tags": list(focus_tags),
            "audio_ext": audio_ext,
        }
        if pod_id:
            payload["pod_id"] = pod_id
        response = await self._post_json("/create-session", payload)
        return _parse(CreatedSession, response)

    async def upload_audio(self, created: CreatedSession, data: bytes, content_type: str) -> None:
        target = created.next.upload
        response = await self._request(
            "PUT",
            f"/storage/{target.bucket}/{quote(target.path)}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        if response.status_code == 409:
            raise DuplicateUpload(_error_from_response(response).message)
        if response.status_code != 200:
            error = _error_from_response(response)
            raise UploadFailed(error.message, details=error.details)
        logger.info("Uploaded %d bytes to %s/%s", len(data), target.bucket, target.path)

    async def assign_to_pod(
        self, focus_area: str | None = None, cohort_id: str | None = None
    ) -> PodAssignment:
        payload = {key: value for key, value in (("focus_area", focus_area), ("cohort_id", cohort_id)) if value}
        response = await self._post_json("/assign-to-pod", payload)
        return _parse(PodAssignment, response)

    async def get_session_audio_url(
        self, session_id: str, expires_in: int | None = None
    ) -> SignedAudioUrl:
        payload: dict[str, object] = {"session_id": session_id}
        if expires_in is not None:
            payload["expires_in"] = expires_in
        response = await self._post_json("/get-session-audio-url", payload)
        return _parse(SignedAudioUrl, response)

    async def save_profile(
        self,
        pseudonym: str,
        native_language: str,
        profession_level: str,
        goals: Sequence[str],
    ) -> dict[str, object]:
        response = await self._post_json(
            "/profile",
            {
                "pseudonym": pseudonym,
                "native_language": native_language,
                "profession_level": profession_level,
                "goals": list(goals),
            },
        )
        return response.json()

    async def fetch_dashboard(self) -> DashboardViewModel:
        response = await self._request("GET", "/dashboard")
        if response.status_code != 200:
            raise _error_from_response(response)
        return _parse(DashboardViewModel, response)
