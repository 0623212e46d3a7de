"""Terminal front end: press Enter to record, transcribe and type the result."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence, TextIO, Tuple, Union

from . import config
from .api import Client
from .audio import AudioSystem
from .config import Config
from .errors import AudioTooShortError, VoiceTypeError
from .typist import TextTyper

log = logging.getLogger(__name__)

VERSION = "1.0.0"
CONFIG_FILE = ".voicetype.conf"
RESET_DELAY = 3.0

ICON_READY = "🎤"
ICON_RECORDING = "🔴"
ICON_BUSY = "⏳"
ICON_ERROR = "❌"
ICON_DONE = "✅"

_PREVIEW_LENGTH = 20


class VoiceTypeApp:
    """Ties recording, transcription and typing together behind a toggle."""

    def __init__(
        self,
        cfg: Config,
        audio_system: AudioSystem,
        client: Client,
        typer: TextTyper,
    ) -> None:
        self.cfg = cfg
        self.audio_system = audio_system
        self.client = client
        self.typer = typer
        self.reset_delay = RESET_DELAY
        self.icon = ICON_READY
        self.status = "Ready"
        self._recording = False
        self._lock = threading.RLock()
        self._stopped = threading.Event()
        self._reset_timer: Optional[threading.Timer] = None

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    @property
    def state(self) -> Tuple[str, str]:
        """The current (icon, status) pair."""
        with self._lock:
            return self.icon, self.status

    def _update_ui(self, icon: str, status: str) -> None:
        with self._lock:
            self.icon = icon
            self.status = status
        log.debug("Status: %s %s", icon, status)

    def toggle_recording(self) -> None:
        """Start recording if idle, otherwise stop and transcribe."""
        if self.is_recording:
            self.stop_recording()
        else:
            self.start_recording()

    def start_recording(self) -> None:
        """Begin capturing audio from the microphone."""
        try:
            self.audio_system.start_recording()
        except (VoiceTypeError, AudioTooShortError, OSError) as exc:
            log.error("❌ Recording error: %s", exc)
            self._update_ui(ICON_ERROR, "Error")
            return

        with self._lock:
            self._recording = True
        self._update_ui(ICON_RECORDING, "Recording...")
        log.info("🎤 Recording... (press Enter to stop)")

    def stop_recording(self) -> Optional[threading.Thread]:
        """Stop capturing; return the thread doing transcription, if any."""
        try:
            audio_data = self.audio_system.stop_recording()
        except (VoiceTypeError, AudioTooShortError, OSError) as exc:
            log.error("❌ Stop error: %s", exc)
            with self._lock:
                self._recording = False
            self._update_ui(ICON_READY, "Ready")
            return None

        with self._lock:
            self._recording = False

        if not audio_data:
            log.warning("⚠️ No audio recorded")
            self._update_ui(ICON_READY, "Ready")
            return None

        log.info("⏹️ Stopped (%d bytes, transcribing...)", len(audio_data))
        self._update_ui(ICON_BUSY, "Transcribing...")

        worker = threading.Thread(
            target=self._transcribe_and_type, args=(audio_data,), daemon=True
        )
        worker.start()

        timer = threading.Timer(self.reset_delay, self._reset_if_idle)
        timer.daemon = True
        with self._lock:
            if self._reset_timer is not None:
                self._reset_timer.cancel()
            self._reset_timer = timer
        timer.start()
        return worker

    def _transcribe_and_type(self, audio_data: bytes) -> None:
        try:
            text = self.client.transcribe(audio_data)
        except Exception as exc:  # worker thread boundary: report every failure
            log.error("❌ Transcription failed: %s", exc)
            self._update_ui(ICON_ERROR, "Error")
            return

        if not text:
            log.warning("⚠️ No speech detected")
            self._update_ui(ICON_READY, "Ready")
            return

        log.info('✅ "%s"', text)

        try:
            self.typer.type_text(text, self.cfg.auto_return)
        except Exception as exc:  # worker thread boundary: report every failure
            log.error("❌ Type error: %s", exc)
            self._update_ui(ICON_ERROR, "Type error")
            return

        log.info("📋 Text pasted!")
        self._update_ui(ICON_DONE, f"Done: {text[:_PREVIEW_LENGTH]}...")

    def _reset_if_idle(self) -> None:
        with self._lock:
            if not self._recording and not self._stopped.is_set():
                self._update_ui(ICON_READY, "Ready")

    def read_stdin(self, stream: Optional[TextIO] = None) -> None:
        """Toggle recording on every blank line read from stream."""
        source = stream if stream is not None else sys.stdin
        for line in source:
            if self._stopped.is_set():
                return
            if not line.strip():
                self.toggle_recording()

    def shutdown(self) -> None:
        """Stop background work and release the microphone."""
        log.info("Shutting down...")
        self._stopped.set()
        with self._lock:
            if self._reset_timer is not None:
                self._reset_timer.cancel()
                self._reset_timer = None
        self.audio_system.close()
        log.info("Done")


def api_key_path() -> Path:
    """Where the API key is stored: a file in the home directory."""
    return Path.home() / CONFIG_FILE


def load_api_key(path: Optional[Union[str, Path]] = None) -> str:
    """Read the stored API key; empty if there is none."""
    target = Path(path) if path else api_key_path()
    try:
        return target.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


def save_api_key(key: str, path: Optional[Union[str, Path]] = None) -> None:
    """Store the API key in a file readable only by the owner."""
    target = Path(path) if path else api_key_path()
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(key)


def ask_api_key(stream: Optional[TextIO] = None) -> str:
    """Prompt for the API key; exit if none is given."""
    source = stream if stream is not None else sys.stdin
    print()
    print("========================================")
    print("  VoiceType - First Time Setup")
    print("========================================")
    print()
    print("Enter your Groq API key:")
    print("(Get it from the Groq console)")
    print()
    print("GROQ_API_KEY: ", end="", flush=True)

    key = source.readline().strip()
    if not key:
        raise SystemExit("Error: API key is required")
    return key


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicetype", description="Speech to text at the cursor", allow_abbrev=False
    )
    parser.add_argument("-help", action="help", help="Show help")
    parser.add_argument("-device", "--device", default="", help="Audio device")
    parser.add_argument(
        "-no-return", "--no-return", dest="no_return", action="store_true",
        help="Don't press Enter after typing",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run VoiceType in the terminal; return the exit code."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    log.info("VoiceType v%s starting...", VERSION)

    cfg = config.load()
    cfg.audio_device = args.device
    if args.no_return:
        cfg.auto_return = False

    api_key = load_api_key()
    if not api_key:
        api_key = ask_api_key()
        save_api_key(api_key)
    cfg.groq_api_key = api_key

    audio_system = AudioSystem()
    audio_system.initialize(cfg.audio_device)

    client = Client(cfg.groq_api_key)
    app = VoiceTypeApp(cfg, audio_system, client, TextTyper())

    print()
    print("VoiceType is running!")
    print("Press ENTER to start/stop recording")
    print("Press Ctrl+C to quit")
    print()

    try:
        app.read_stdin(sys.stdin)
    except KeyboardInterrupt:
        pass
    finally:
        app.shutdown()
        client.close()
    return 0