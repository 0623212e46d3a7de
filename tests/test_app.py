import io
import stat
import time

import pytest

from voicetype.app import (
    ICON_DONE,
    ICON_ERROR,
    ICON_READY,
    ICON_RECORDING,
    CONFIG_FILE,
    VoiceTypeApp,
    api_key_path,
    ask_api_key,
    load_api_key,
    main,
    save_api_key,
)
from voicetype.config import Config
from voicetype.errors import AudioTooShortError, ErrorType, VoiceTypeError


class FakeAudio:
    def __init__(self, data=b"\x01\x02" * 10, fail_start=False, fail_stop=False):
        self.data = data
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.starts = 0
        self.stops = 0
        self.closed = False

    def start_recording(self):
        if self.fail_start:
            raise VoiceTypeError(ErrorType.AUDIO, "already recording")
        self.starts += 1

    def stop_recording(self):
        self.stops += 1
        if self.fail_stop:
            raise AudioTooShortError()
        return self.data

    def close(self):
        self.closed = True


class FakeClient:
    def __init__(self, text="hello world", error=None):
        self.text = text
        self.error = error
        self.received = []

    def transcribe(self, audio_data):
        self.received.append(audio_data)
        if self.error is not None:
            raise self.error
        return self.text


class FakeTyper:
    def __init__(self, error=None):
        self.error = error
        self.typed = []

    def type_text(self, text, press_enter=False):
        if self.error is not None:
            raise self.error
        self.typed.append((text, press_enter))


def make_app(audio=None, client=None, typer=None, cfg=None):
    app = VoiceTypeApp(
        cfg or Config(),
        audio or FakeAudio(),
        client or FakeClient(),
        typer or FakeTyper(),
    )
    app.reset_delay = 60.0
    return app


def run_cycle(app):
    app.toggle_recording()
    worker = app.stop_recording()
    assert worker is not None
    worker.join(timeout=5)
    return worker


def test_start_recording_sets_state():
    audio = FakeAudio()
    app = make_app(audio=audio)
    app.start_recording()
    assert app.is_recording
    assert app.state == (ICON_RECORDING, "Recording...")
    assert audio.starts == 1
    app.shutdown()


def test_start_recording_failure_reports_error():
    app = make_app(audio=FakeAudio(fail_start=True))
    app.start_recording()
    assert not app.is_recording
    assert app.state == (ICON_ERROR, "Error")


def test_full_cycle_types_transcription():
    audio = FakeAudio(data=b"\x10\x00\x20\x00")
    client = FakeClient(text="hello world")
    typer = FakeTyper()
    app = make_app(audio=audio, client=client, typer=typer, cfg=Config(auto_return=False))
    run_cycle(app)
    assert client.received == [b"\x10\x00\x20\x00"]
    assert typer.typed == [("hello world", False)]
    assert app.state == (ICON_DONE, "Done: hello world...")
    assert not app.is_recording
    app.shutdown()


def test_long_text_is_truncated_in_status():
    app = make_app(client=FakeClient(text="abcdefghijklmnopqrstuvwxyz"))
    run_cycle(app)
    assert app.status == "Done: abcdefghijklmnopqrst..."
    app.shutdown()


def test_transcription_error_reports_error():
    typer = FakeTyper()
    app = make_app(client=FakeClient(error=VoiceTypeError(ErrorType.API, "bad")), typer=typer)
    run_cycle(app)
    assert app.state == (ICON_ERROR, "Error")
    assert typer.typed == []
    app.shutdown()


def test_empty_transcription_returns_to_ready():
    typer = FakeTyper()
    app = make_app(client=FakeClient(text=""), typer=typer)
    run_cycle(app)
    assert app.state == (ICON_READY, "Ready")
    assert typer.typed == []
    app.shutdown()


def test_typing_error_reports_type_error():
    app = make_app(typer=FakeTyper(error=OSError("no tool")))
    run_cycle(app)
    assert app.state == (ICON_ERROR, "Type error")
    app.shutdown()


def test_stop_error_resets_to_ready():
    client = FakeClient()
    app = make_app(audio=FakeAudio(fail_stop=True), client=client)
    app.start_recording()
    assert app.stop_recording() is None
    assert not app.is_recording
    assert app.state == (ICON_READY, "Ready")
    assert client.received == []


def test_status_resets_to_ready_after_delay():
    app = make_app()
    app.reset_delay = 0.05
    run_cycle(app)
    deadline = time.monotonic() + 3
    while app.state != (ICON_READY, "Ready") and time.monotonic() < deadline:
        time.sleep(0.02)
    assert app.state == (ICON_READY, "Ready")
    app.shutdown()


def test_read_stdin_toggles_on_blank_lines_only():
    audio = FakeAudio()
    app = make_app(audio=audio)
    app.read_stdin(io.StringIO("\nnot blank\n  \n"))
    assert audio.starts == 1
    assert audio.stops == 1
    app.shutdown()


def test_read_stdin_stops_after_shutdown():
    audio = FakeAudio()
    app = make_app(audio=audio)
    app.shutdown()
    app.read_stdin(io.StringIO("\n\n"))
    assert audio.starts == 0


def test_shutdown_closes_audio():
    audio = FakeAudio()
    app = make_app(audio=audio)
    app.shutdown()
    assert audio.closed


def test_api_key_round_trip(tmp_path):
    path = tmp_path / "key.conf"
    save_api_key("placeholder", path)
    assert load_api_key(path) == "placeholder"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_load_api_key_strips_whitespace(tmp_path):
    path = tmp_path / "key.conf"
    path.write_text("  token \n", encoding="utf-8")
    assert load_api_key(path) == "token"


def test_load_api_key_missing_file(tmp_path):
    assert load_api_key(tmp_path / "absent.conf") == ""


def test_api_key_path_in_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert api_key_path() == tmp_path / CONFIG_FILE


def test_ask_api_key_reads_line(capsys):
    assert ask_api_key(io.StringIO("  token \n")) == "token"
    assert "GROQ_API_KEY: " in capsys.readouterr().out


def test_ask_api_key_requires_value():
    with pytest.raises(SystemExit):
        ask_api_key(io.StringIO("\n"))


def test_main_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["-help"])
    assert excinfo.value.code == 0
    assert "-device" in capsys.readouterr().out