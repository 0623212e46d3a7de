import io
import struct
import time
import wave
from unittest import mock

import pytest

from voicetype.audio import AudioSystem, rms_level
from voicetype.errors import AudioTooShortError, ErrorType, VoiceTypeError, is_type


class FakeProcess:
    def __init__(self, data):
        self.stdout = io.BytesIO(data)
        self.killed = False

    def kill(self):
        self.killed = True

    def wait(self, timeout=None):
        return 0


def wait_for_buffer(system, size):
    deadline = time.monotonic() + 2.0
    while len(system.audio_buffer) < size and time.monotonic() < deadline:
        time.sleep(0.01)


def pcm(samples):
    return b"".join(struct.pack("<h", s) for s in samples)


def test_rms_of_silence_is_zero():
    assert rms_level(bytes(400)) == 0.0


def test_rms_of_empty_or_single_byte_is_zero():
    assert rms_level(b"") == 0.0
    assert rms_level(b"\x7f") == 0.0


def test_rms_is_clamped_to_one():
    assert rms_level(pcm([32767, -32768] * 100)) == 1.0


def test_rms_grows_with_amplitude():
    quiet = rms_level(pcm([100, -100] * 100))
    louder = rms_level(pcm([1000, -1000] * 100))
    assert 0.0 < quiet < louder < 1.0


def test_start_records_and_stop_returns_audio():
    data = pcm(range(-500, 500))
    fake = FakeProcess(data)
    system = AudioSystem(None)
    system.initialize("hw:1")
    with mock.patch("voicetype.audio.subprocess.Popen", return_value=fake) as popen:
        system.start_recording()
        wait_for_buffer(system, len(data))
        result = system.stop_recording()
    args = popen.call_args.args[0]
    assert args[:3] == ["arecord", "-D", "hw:1"]
    assert "S16_LE" in args and "16000" in args
    assert result == data
    assert fake.killed
    assert not system.is_recording
    assert system.audio_buffer == b""


def test_initialize_keeps_default_device_for_empty_name():
    system = AudioSystem(None)
    system.initialize("")
    assert system.device == "default"


def test_start_twice_raises():
    system = AudioSystem(None)
    with mock.patch("voicetype.audio.subprocess.Popen", return_value=FakeProcess(b"")):
        system.start_recording()
        with pytest.raises(VoiceTypeError) as info:
            system.start_recording()
        with pytest.raises(AudioTooShortError):
            system.stop_recording()
    assert is_type(info.value, ErrorType.AUDIO)
    assert info.value.message == "already recording"


def test_stop_without_recording_raises():
    with pytest.raises(VoiceTypeError) as info:
        AudioSystem(None).stop_recording()
    assert info.value.message == "not recording"


def test_missing_arecord_raises():
    system = AudioSystem(None)
    with mock.patch(
        "voicetype.audio.subprocess.Popen", side_effect=FileNotFoundError("arecord")
    ):
        with pytest.raises(VoiceTypeError) as info:
            system.start_recording()
    assert is_type(info.value, ErrorType.AUDIO)
    assert not system.is_recording


def test_level_and_duration_while_recording():
    data = pcm([20000, -20000] * 8000)
    system = AudioSystem(None)
    assert system.level() == 0.0
    with mock.patch("voicetype.audio.subprocess.Popen", return_value=FakeProcess(data)):
        system.start_recording()
        wait_for_buffer(system, len(data))
        assert system.level() == 1.0
        assert system.duration() == 1.0
        system.close()
    assert not system.is_recording
    assert system.level() == 0.0


def test_save_to_file_round_trip(tmp_path):
    data = pcm(range(0, 3000, 3))
    system = AudioSystem(None)
    target = tmp_path / "out.wav"
    with mock.patch("voicetype.audio.subprocess.Popen", return_value=FakeProcess(data)):
        system.start_recording()
        wait_for_buffer(system, len(data))
        system.save_to_file(target)
        system.stop_recording()
    with wave.open(str(target), "rb") as reader:
        assert reader.getframerate() == 16000
        assert reader.getnchannels() == 1
        assert reader.getsampwidth() == 2
        assert reader.readframes(reader.getnframes()) == data


def test_save_without_audio_raises(tmp_path):
    with pytest.raises(VoiceTypeError):
        AudioSystem(None).save_to_file(tmp_path / "none.wav")
    assert not (tmp_path / "none.wav").exists()