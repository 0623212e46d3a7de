"""WAV (RIFF PCM) encoding."""

from __future__ import annotations

import struct
from typing import BinaryIO

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
HEADER_SIZE = _HEADER.size


class WavWriter:
    """Writes PCM audio to a stream, preceded by a WAV header."""

    def __init__(
        self, stream: BinaryIO, sample_rate: int, channels: int, bits_per_sample: int
    ) -> None:
        self.stream = stream
        self.sample_rate = sample_rate
        self.channels = channels
        self.bits_per_sample = bits_per_sample
        self.data_size = 0
        self.header_written = False

    def _header(self) -> bytes:
        byte_rate = self.sample_rate * self.channels * self.bits_per_sample // 8
        block_align = self.channels * self.bits_per_sample // 8
        return _HEADER.pack(
            b"RIFF",
            36 + self.data_size,
            b"WAVE",
            b"fmt ",
            16,
            1,
            self.channels,
            self.sample_rate,
            byte_rate,
            block_align,
            self.bits_per_sample,
            b"data",
            self.data_size,
        )

    def _write_header(self) -> None:
        self.stream.write(self._header())
        self.header_written = True

    def write(self, data: bytes) -> int:
        """Write audio data, writing the header first if needed."""
        if not self.header_written:
            self._write_header()
        written = self.stream.write(data)
        if written is None:
            written = len(data)
        self.data_size += written
        return written

    def close(self) -> None:
        """Finish the file; writes an empty header if nothing was written."""
        if not self.header_written:
            self.data_size = 0
            self._write_header()

    def __str__(self) -> str:
        return (
            f"WAV Writer: {self.sample_rate} Hz, {self.channels} channel(s), "
            f"{self.bits_per_sample} bits per sample"
        )


def encode(
    audio_data: bytes, sample_rate: int, channels: int, bits_per_sample: int
) -> bytes:
    """Encode raw PCM audio as WAV bytes in memory."""
    writer = WavWriter(None, sample_rate, channels, bits_per_sample)  # type: ignore[arg-type]
    return writer._header() + bytes(audio_data)


def wav_header_size() -> int:
    """Size in bytes of a WAV header."""
    return HEADER_SIZE


def calculate_wav_size(audio_data_size: int) -> int:
    """Total size of a WAV file holding the given amount of audio data."""
    return HEADER_SIZE + audio_data_size