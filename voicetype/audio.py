"""Microphone capture through arecord."""

from __future__ import annotations

import logging
import math
import struct
import subprocess
import threading
from contextlib import suppress
from pathlib import Path
from typing import IO, Optional, Union

from . import wav
from .errors import AudioTooShortError, ErrorType, Handler, VoiceTypeError

log = logging.getLogger(__name__)

_CHUNK_SIZE = 4096
_LEVEL_WINDOW = 400
_LEVEL_GAIN = 5.0


def rms_level(data: bytes) -> float:
    """Loudness of 16-bit little-endian PCM as amplified RMS, clamped to 0..1."""
    usable = len(data) - len(data) % 2
    if usable == 0:
        return 0.0
    total = sum(
        (sample / 32768.0) ** 2
        for (sample,) in struct.iter_unpack("<h", bytes(data[:usable]))
    )
    rms = math.sqrt(total / (usable // 2))
    return min(rms * _LEVEL_GAIN, 1.0)


class AudioSystem:
    """Records raw PCM audio from a microphone."""

    def __init__(self, err_handler: Optional[Handler] = None) -> None:
        self.err_handler = err_handler
        self.sample_rate = 16000
        self.channels = 1
        self.bits_per_sample = 16
        self.device = "default"
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._recording = False
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def audio_buffer(self) -> bytes:
        """A copy of the audio captured so far."""
        with self._lock:
            return bytes(self._buffer)

    def initialize(self, device: str = "") -> None:
        """Select the capture device; an empty name keeps the default."""
        if device:
            self.device = device
        log.info("Audio system initialized with device: %s", self.device)

    def start_recording(self) -> None:
        """Start capturing audio in the background."""
        if self._recording:
            raise VoiceTypeError(ErrorType.AUDIO, "already recording")

        with self._lock:
            self._buffer = bytearray()

        args = [
            "arecord",
            "-D", self.device,
            "-f", "S16_LE",
            "-r", str(self.sample_rate),
            "-c", str(self.channels),
            "-t", "raw",
        ]
        try:
            self._process = subprocess.Popen(
                args, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL
            )
        except OSError as exc:
            raise VoiceTypeError(ErrorType.AUDIO, "failed to start arecord", exc) from exc

        self._recording = True
        self._reader = threading.Thread(
            target=self._read_audio, args=(self._process.stdout,), daemon=True
        )
        self._reader.start()
        log.info("Started recording audio at %d Hz", self.sample_rate)

    def _read_audio(self, stream: IO[bytes]) -> None:
        while True:
            try:
                chunk = stream.read1(_CHUNK_SIZE)
            except (OSError, ValueError):
                break
            if not chunk:
                break
            with self._lock:
                self._buffer.extend(chunk)

    def stop_recording(self) -> bytes:
        """Stop capturing and return the recorded audio."""
        if not self._recording:
            raise VoiceTypeError(ErrorType.AUDIO, "not recording")
        self._recording = False

        process, self._process = self._process, None
        if process is not None:
            with suppress(OSError):
                process.kill()
            process.wait()
        if self._reader is not None:
            self._reader.join(timeout=1.0)
            self._reader = None
        if process is not None and process.stdout is not None:
            with suppress(OSError):
                process.stdout.close()

        with self._lock:
            if not self._buffer:
                raise AudioTooShortError()
            data = bytes(self._buffer)
            self._buffer = bytearray()

        log.info("Stopped recording, captured %d bytes of audio", len(data))
        return data

    def close(self) -> None:
        """Stop any recording in progress."""
        if self._recording:
            with suppress(VoiceTypeError, AudioTooShortError):
                self.stop_recording()
        log.info("Audio system closed")

    def level(self) -> float:
        """Current input level between 0 and 1, from the last ~12.5 ms."""
        if not self._recording:
            return 0.0
        with self._lock:
            if len(self._buffer) < _LEVEL_WINDOW:
                return 0.0
            tail = bytes(self._buffer[-_LEVEL_WINDOW:])
        return rms_level(tail)

    def duration(self) -> float:
        """Length in seconds of the audio captured so far."""
        with self._lock:
            size = len(self._buffer)
        if size == 0:
            return 0.0
        frame_size = self.bits_per_sample // 8 * self.channels
        return (size // frame_size) / self.sample_rate

    def save_to_file(self, filename: Union[str, Path]) -> None:
        """Write the captured audio to a WAV file."""
        data = self.audio_buffer
        if not data:
            raise VoiceTypeError(ErrorType.AUDIO, "no audio data to save")
        encoded = wav.encode(data, self.sample_rate, self.channels, self.bits_per_sample)
        Path(filename).write_bytes(encoded)
        log.info("Saved audio to %s (%d bytes)", filename, len(encoded) - 8)

    def __enter__(self) -> "AudioSystem":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()