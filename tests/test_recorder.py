import wave

import numpy as np

from rhetor.client.recorder import SoundDeviceCapture


def test_callback_keeps_frames_flagged_with_overflow(tmp_path):
    capture = SoundDeviceCapture(tmp_path / "take.wav", sample_rate_hz=16000, channels=1, device=None)
    handle = wave.open(str(capture.output_path), "wb")
    handle.setnchannels(1)
    handle.setsampwidth(2)
    handle.setframerate(16000)
    capture._handle = handle

    capture._callback(np.zeros((160, 1), dtype=np.int16), 160, None, "input overflow")
    capture._callback(np.ones((80, 1), dtype=np.float32), 80, None, None)

    assert capture._finish() == capture.output_path
    assert capture.frames_written == 240
    with wave.open(str(capture.output_path), "rb") as reader:
        assert reader.getnframes() == 240


def test_finish_without_frames_removes_file(tmp_path):
    capture = SoundDeviceCapture(tmp_path / "empty.wav", sample_rate_hz=16000, channels=1, device=None)
    handle = wave.open(str(capture.output_path), "wb")
    handle.setnchannels(1)
    handle.setsampwidth(2)
    handle.setframerate(16000)
    capture._handle = handle

    assert capture._finish() is None
    assert not capture.output_path.exists()
