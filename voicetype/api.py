"""Speech-to-text client for the Groq transcription API."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from . import wav
from .errors import (
    APIKeyInvalidError,
    AudioTooShortError,
    ErrorType,
    Handler,
    RateLimitedError,
    VoiceTypeError,
    wrap,
)

log = logging.getLogger(__name__)

BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "whisper-large-v3"
REQUEST_TIMEOUT = 30.0

SAMPLE_RATE = 16000
CHANNELS = 1
BITS_PER_SAMPLE = 16

_PROMPT = (
    "Transcribe the audio accurately. Add appropriate punctuation and "
    "capitalization. Remove filler words like 'um', 'uh', 'ah'. Ensure the "
    "output is natural and professional."
)


def _field(data: Dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if kind is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"field {key!r} is not a number")
        return float(value)
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"field {key!r} is not an integer")
        return value
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} has the wrong type")
    return value


@dataclass
class Segment:
    """A transcribed stretch of audio."""

    id: int = 0
    start: float = 0.0
    end: float = 0.0
    text: str = ""
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "Segment":
        if not isinstance(data, dict):
            raise ValueError("segment is not an object")
        return cls(
            id=_field(data, "id", int, 0),
            start=_field(data, "start", float, 0.0),
            end=_field(data, "end", float, 0.0),
            text=_field(data, "text", str, ""),
            confidence=_field(data, "confidence", float, 0.0),
        )


@dataclass
class TranscriptionResponse:
    """The body of a verbose transcription response."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    task: str = ""
    text: str = ""
    language: str = ""
    duration: float = 0.0
    segments: List[Segment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "TranscriptionResponse":
        """Build a response from decoded JSON; raises ValueError on bad shapes."""
        if not isinstance(data, dict):
            raise ValueError("response is not an object")
        segments = _field(data, "segments", list, [])
        return cls(
            id=_field(data, "id", str, ""),
            object=_field(data, "object", str, ""),
            created=_field(data, "created", int, 0),
            model=_field(data, "model", str, ""),
            task=_field(data, "task", str, ""),
            text=_field(data, "text", str, ""),
            language=_field(data, "language", str, ""),
            duration=_field(data, "duration", float, 0.0),
            segments=[Segment.from_dict(item) for item in segments],
        )


class Client:
    """Sends recorded audio to the transcription API."""

    def __init__(self, api_key: str, err_handler: Optional[Handler] = None) -> None:
        self.api_key = api_key
        self.base_url = BASE_URL
        self.model = DEFAULT_MODEL
        self.timeout = REQUEST_TIMEOUT
        self.err_handler = err_handler
        self._session = requests.Session()

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def transcribe(self, audio_data: bytes) -> str:
        """Transcribe raw 16 kHz mono 16-bit PCM audio and return the text."""
        if not audio_data:
            raise AudioTooShortError()

        try:
            wav_data = wav.encode(audio_data, SAMPLE_RATE, CHANNELS, BITS_PER_SAMPLE)
        except (struct.error, TypeError) as exc:
            raise wrap(exc, ErrorType.API, "failed to encode WAV") from exc

        form = {
            "model": self.model,
            "temperature": "0",
            "response_format": "verbose_json",
            "prompt": _PROMPT,
        }
        try:
            response = self._session.post(
                f"{self.base_url}/audio/transcriptions",
                headers=self._auth_headers(),
                data=form,
                files={"file": ("audio.wav", wav_data)},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise wrap(exc, ErrorType.NETWORK, "request failed") from exc

        with response:
            if response.status_code != 200:
                raise self._error_for(response)
            try:
                result = TranscriptionResponse.from_dict(response.json())
            except ValueError as exc:
                raise wrap(exc, ErrorType.API, "failed to decode response") from exc
        return result.text

    @staticmethod
    def _error_for(response: requests.Response) -> Exception:
        body = response.text
        status = response.status_code
        if status == 401:
            return APIKeyInvalidError()
        if status == 429:
            return RateLimitedError()
        if status == 400:
            return VoiceTypeError(ErrorType.API, f"bad request: {body}")
        if status in (500, 502, 503, 504):
            return VoiceTypeError(ErrorType.API, f"server error: {body}")
        return VoiceTypeError(ErrorType.API, f"API error (status {status}): {body}")

    def health_check(self) -> None:
        """Check that the API answers; raises if it does not."""
        try:
            response = self._session.get(
                f"{self.base_url}/models",
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise wrap(exc, ErrorType.NETWORK, "health check failed") from exc
        with response:
            if response.status_code != 200:
                raise VoiceTypeError(
                    ErrorType.NETWORK,
                    f"health check failed with status {response.status_code}",
                )

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()