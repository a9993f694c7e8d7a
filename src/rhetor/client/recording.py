"""Practice-session capture cycle.

One instance drives one cycle at a time::

    idle -> creatingSession -> recording -> uploading -> idle

Every failure lands back in ``idle`` with both the created-session handle and
the capture handle released. Requests that arrive in the wrong state are
ignored rather than queued.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from rhetor.client.recorder import AudioCapture, AudioRecorder
from rhetor.core.variants import ABSENT, UNRESOLVED, Handle, Present
from rhetor.errors import (
    CaptureProducedNoFile,
    DuplicateUpload,
    PermissionDenied,
    RhetorError,
    SessionCreationFailed,
    UploadFailed,
)
from rhetor.models.schemas import CreatedSession
from rhetor.services.storage import content_type_for

logger = logging.getLogger(__name__)


class RecordingState(str, Enum):
    IDLE = "idle"
    CREATING_SESSION = "creatingSession"
    RECORDING = "recording"
    UPLOADING = "uploading"


class SessionApi(Protocol):
    async def create_session(
        self,
        session_type: str,
        focus_tags: Sequence[str],
        audio_ext: str = "m4a",
        pod_id: str | None = None,
    ) -> CreatedSession: ...

    async def upload_audio(self, created: CreatedSession, data: bytes, content_type: str) -> None: ...


UploadCallback = Callable[[CreatedSession], Awaitable[None]]


def format_elapsed(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def _describe(exc: Exception) -> tuple[str, str | None]:
    if isinstance(exc, RhetorError):
        return exc.message, exc.details
    return str(exc) or type(exc).__name__, None


class RecordingSession:
    def __init__(
        self,
        api: SessionApi,
        recorder: AudioRecorder,
        on_uploaded: Optional[UploadCallback] = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.api = api
        self.recorder = recorder
        self.on_uploaded = on_uploaded
        self.tick_interval = tick_interval
        self.state = RecordingState.IDLE
        self.elapsed_seconds = 0
        self.created: Handle[CreatedSession] = ABSENT
        self.capture: Handle[AudioCapture] = ABSENT
        self.torn_down = False
        self._ticker: Optional[asyncio.Task] = None

    def _release(self) -> None:
        self._stop_ticker()
        self.created = ABSENT
        self.capture = ABSENT
        self.state = RecordingState.IDLE

    def _fail(self, error: RhetorError, cause: Exception | None = None) -> bool:
        self._release()
        if self.torn_down:
            logger.info("Dropping %s after teardown: %s", type(error).__name__, error.message)
            return False
        logger.warning("%s: %s", type(error).__name__, error.message)
        if cause is None or cause is error:
            raise error
        raise error from cause

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if self.state is RecordingState.RECORDING:
                self.elapsed_seconds += 1

    async def start(
        self,
        session_type: str,
        focus_tags: Sequence[str],
        pod_id: str | None = None,
    ) -> bool:
        """Open a session server-side and begin capture.

        Returns False when the request was ignored (busy or torn down) or its
        result was dropped because of teardown.
        """
        if self.torn_down or self.state is not RecordingState.IDLE:
            logger.debug("Ignoring start while %s", self.state.value)
            return False

        self.state = RecordingState.CREATING_SESSION
        self.elapsed_seconds = 0
        self.created = UNRESOLVED

        try:
            granted = await self.recorder.request_permission()
        except Exception as exc:
            return self._fail(PermissionDenied(*_describe(exc)), exc)
        if self.torn_down:
            self._release()
            return False
        if not granted:
            return self._fail(PermissionDenied("Microphone permission is required to record."))

        try:
            created = await self.api.create_session(
                session_type, list(focus_tags), self.recorder.audio_ext, pod_id
            )
        except Exception as exc:
            return self._fail(SessionCreationFailed(*_describe(exc)), exc)
        if self.torn_down:
            self._release()
            return False
        self.created = Present(created)

        try:
            capture = await self.recorder.begin()
        except Exception as exc:
            return self._fail(SessionCreationFailed(*_describe(exc)), exc)
        if self.torn_down:
            await capture.discard()
            self._release()
            return False

        self.capture = Present(capture)
        self.state = RecordingState.RECORDING
        self._ticker = asyncio.create_task(self._tick())
        logger.info("Recording session %s", created.session_id)
        return True

    async def stop(self) -> bool:
        """Finalise capture and upload it to the session's storage target."""
        if self.state is not RecordingState.RECORDING:
            logger.debug("Ignoring stop while %s", self.state.value)
            return False

        self.state = RecordingState.UPLOADING
        self._stop_ticker()
        created = self.created.value
        capture = self.capture.value
        self.capture = ABSENT

        try:
            audio_path = await capture.stop()
        except Exception as exc:
            return self._fail(CaptureProducedNoFile(*_describe(exc)), exc)
        if audio_path is None:
            return self._fail(CaptureProducedNoFile("No recording file found."))

        try:
            return await self._upload(created, Path(audio_path))
        finally:
            await asyncio.to_thread(Path(audio_path).unlink, missing_ok=True)

    async def _upload(self, created: CreatedSession, audio_path: Path) -> bool:
        if self.torn_down:
            self._release()
            return False

        try:
            data = await asyncio.to_thread(audio_path.read_bytes)
        except OSError as exc:
            return self._fail(UploadFailed("Failed to read recording", details=str(exc)), exc)
        if self.torn_down:
            self._release()
            return False

        try:
            await self.api.upload_audio(created, data, content_type_for(created.audio_ext))
        except DuplicateUpload as exc:
            return self._fail(exc, exc)
        except Exception as exc:
            return self._fail(UploadFailed(*_describe(exc)), exc)

        self._release()
        if self.torn_down:
            return False

        logger.info("Uploaded session %s after %ss", created.session_id, self.elapsed_seconds)
        if self.on_uploaded is not None:
            await self.on_uploaded(created)
        return True

    async def teardown(self) -> None:
        """Stop on component exit; in-flight calls finish but are ignored."""
        self.torn_down = True
        self._stop_ticker()
        if self.state is RecordingState.RECORDING:
            capture = self.capture.value
            self._release()
            await capture.discard()
