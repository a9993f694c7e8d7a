import json
from datetime import datetime

import httpx
import pytest

from rhetor.client.api import RhetorApiClient
from rhetor.errors import (
    AuthError,
    DataSourceError,
    DuplicateUpload,
    ForbiddenError,
    UploadFailed,
    ValidationError,
)
from rhetor.models.schemas import CreatedSession

BASE = "http://api.test/api/v1"


def _client(handler):
    transport = httpx.MockTransport(handler)
    return RhetorApiClient("token-1", base_url=BASE, client=httpx.AsyncClient(transport=transport))


def _created_payload():
    path = "user-1/sess-1.m4a"
    return {
        "session_id": "sess-1",
        "pod_id": "pod-1",
        "session_type": "prompt",
        "focus_tags": ["clarity"],
        "audio_bucket": "rhetor-audio",
        "audio_path": path,
        "status": "recorded",
        "submitted_at": datetime(2024, 5, 1, 12, 0).isoformat(),
        "next": {"upload": {"bucket": "rhetor-audio", "path": path}},
    }


@pytest.mark.asyncio
async def test_create_session_sends_body_and_parses_response():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_created_payload())

    created = await _client(handler).create_session("prompt", ["clarity"], audio_ext="wav")

    assert seen["url"] == f"{BASE}/create-session"
    assert seen["auth"] == "Bearer token-1"
    assert seen["body"] == {"session_type": "prompt", "focus_tags": ["clarity"], "audio_ext": "wav"}
    assert created.audio_path == "user-1/sess-1.m4a"
    assert created.audio_ext == "m4a"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error_cls",
    [(400, ValidationError), (401, AuthError), (403, ForbiddenError), (500, DataSourceError)],
)
async def test_error_statuses_map_to_exceptions(status, error_cls):
    def handler(request):
        return httpx.Response(status, json={"error": "nope", "details": "why"})

    with pytest.raises(error_cls) as excinfo:
        await _client(handler).assign_to_pod(focus_area="Interview Prep")

    assert excinfo.value.message == "nope"
    assert excinfo.value.details == "why"


@pytest.mark.asyncio
async def test_transport_failure_is_a_data_source_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DataSourceError):
        await _client(handler).fetch_dashboard()


@pytest.mark.asyncio
async def test_malformed_response_is_a_data_source_error():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(DataSourceError, match="Unexpected response"):
        await _client(handler).get_session_audio_url("sess-1")


@pytest.mark.asyncio
async def test_upload_puts_bytes_without_upsert():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["content"] = request.content
        return httpx.Response(200, json={"Key": "rhetor-audio/user-1/sess-1.m4a"})

    created = CreatedSession.model_validate(_created_payload())
    await _client(handler).upload_audio(created, b"bytes", "audio/mp4")

    assert seen["method"] == "PUT"
    assert seen["url"] == f"{BASE}/storage/rhetor-audio/user-1/sess-1.m4a"
    assert seen["headers"]["content-type"] == "audio/mp4"
    assert seen["headers"]["x-upsert"] == "false"
    assert seen["content"] == b"bytes"


@pytest.mark.asyncio
async def test_upload_conflict_and_failure():
    created = CreatedSession.model_validate(_created_payload())
    conflict = _client(lambda request: httpx.Response(409, json={"error": "The resource already exists"}))
    broken = _client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(DuplicateUpload, match="already exists"):
        await conflict.upload_audio(created, b"bytes", "audio/mp4")
    with pytest.raises(UploadFailed):
        await broken.upload_audio(created, b"bytes", "audio/mp4")
