"""Microphone capture."""

from __future__ import annotations

import asyncio
import logging
import tempfile
import threading
import wave
from pathlib import Path
from typing import Any, Optional, Protocol

import numpy as np

from rhetor.errors import RhetorError

logger = logging.getLogger(__name__)


class RecorderError(RhetorError):
    pass


class AudioCapture(Protocol):
    async def stop(self) -> Optional[Path]: ...

    async def discard(self) -> None: ...


class AudioRecorder(Protocol):
    audio_ext: str

    async def request_permission(self) -> bool: ...

    async def begin(self) -> AudioCapture: ...


def _import_sounddevice():
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RecorderError("sounddevice is required for recording.") from exc
    return sd


def list_input_devices() -> list[dict[str, Any]]:
    sd = _import_sounddevice()
    return [d for d in sd.query_devices() if d.get("max_input_channels", 0) > 0]


class SoundDeviceCapture:
    """One open input stream writing 16-bit PCM frames to a WAV file."""

    def __init__(self, output_path: Path, sample_rate_hz: int, channels: int, device: Optional[str]) -> None:
        self.output_path = output_path
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device = device
        self.frames_written = 0
        self._lock = threading.Lock()
        self._handle: Optional[wave.Wave_write] = None
        self._stream = None

    def _callback(self, indata, frames, _time, status) -> None:
        if status:
            logger.warning("Input stream status: %s", status)
        with self._lock:
            if self._handle is None:
                return
            if indata.dtype != np.int16:
                indata = indata.astype(np.int16)
            self._handle.writeframes(indata.tobytes())
            self.frames_written += frames

    def open(self) -> None:
        sd = _import_sounddevice()
        self._handle = wave.open(str(self.output_path), "wb")
        self._handle.setnchannels(self.channels)
        self._handle.setsampwidth(2)
        self._handle.setframerate(self.sample_rate_hz)
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate_hz,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                callback=self._callback,
            )
            self._stream.start()
        except Exception as exc:
            self._close()
            self.output_path.unlink(missing_ok=True)
            raise RecorderError(f"Failed to start recording: {exc}") from exc

    def _close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def _finish(self) -> Optional[Path]:
        self._close()
        if self.frames_written == 0:
            self.output_path.unlink(missing_ok=True)
            return None
        return self.output_path

    def _drop(self) -> None:
        self._close()
        self.output_path.unlink(missing_ok=True)

    async def stop(self) -> Optional[Path]:
        return await asyncio.to_thread(self._finish)

    async def discard(self) -> None:
        await asyncio.to_thread(self._drop)


class SoundDeviceRecorder:
    audio_ext = "wav"

    def __init__(
        self,
        sample_rate_hz: int = 44100,
        channels: int = 1,
        device_name: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device_name = device_name
        self.output_dir = output_dir

    async def request_permission(self) -> bool:
        try:
            devices = await asyncio.to_thread(list_input_devices)
        except RecorderError:
            raise
        except Exception as exc:
            logger.warning("Input device query failed: %s", exc)
            return False
        return bool(devices)

    def _open_capture(self) -> SoundDeviceCapture:
        directory = self.output_dir or Path(tempfile.gettempdir())
        directory.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            prefix="rhetor-", suffix=f".{self.audio_ext}", dir=directory, delete=False
        )
        handle.close()
        capture = SoundDeviceCapture(
            Path(handle.name), self.sample_rate_hz, self.channels, self.device_name
        )
        capture.open()
        return capture

    async def begin(self) -> SoundDeviceCapture:
        return await asyncio.to_thread(self._open_capture)
