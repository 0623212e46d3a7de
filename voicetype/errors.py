"""Error types and a central error handler."""

from __future__ import annotations

import logging
import threading
import traceback
from enum import IntEnum
from typing import Callable, List, Optional


class ErrorType(IntEnum):
    """Category of a VoiceType error."""

    UNKNOWN = 0
    AUDIO = 1
    API = 2
    TYPING = 3
    HOTKEY = 4
    UI = 5
    CONFIG = 6
    NETWORK = 7


class VoiceTypeError(Exception):
    """An error carrying a category, a message, a cause and the stack it came from."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        err: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.err = err
        self.stack = "".join(traceback.format_stack()[:-1])

    def __str__(self) -> str:
        if self.err is not None:
            return f"{self.message}: {self.err}"
        return self.message


class AudioTooShortError(Exception):
    """The recording held no usable audio."""

    def __init__(self, message: str = "audio recording is too short") -> None:
        super().__init__(message)


class APIKeyInvalidError(Exception):
    """The API rejected the key."""

    def __init__(self, message: str = "API key is invalid") -> None:
        super().__init__(message)


class RateLimitedError(Exception):
    """The API refused the request because of rate limiting."""

    def __init__(self, message: str = "rate limited") -> None:
        super().__init__(message)


def _render(format: str, args: tuple) -> str:
    return format % args if args else format


class Handler:
    """Logs errors and passes them on to registered callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[VoiceTypeError], None]] = []
        self.logger = logging.getLogger("voicetype")

    def on_error(self, callback: Callable[[VoiceTypeError], None]) -> None:
        """Register a callback that receives every handled error."""
        with self._lock:
            self._callbacks.append(callback)

    def handle(self, err: Optional[BaseException]) -> None:
        """Log an error and notify callbacks, each in its own thread."""
        if err is None:
            return
        with self._lock:
            self.logger.error("%s", err)
            for callback in self._callbacks:
                wrapped = VoiceTypeError(ErrorType.UNKNOWN, "Error occurred", err)
                threading.Thread(target=callback, args=(wrapped,), daemon=True).start()

    def error(self, format: str, *args) -> None:
        """Handle an error built from a %-style format."""
        self.handle(Exception(_render(format, args)))

    def fatal(self, format: str, *args) -> None:
        """Handle an error, then exit the program."""
        self.handle(Exception(_render(format, args)))
        self.logger.critical("Fatal error, exiting...")
        raise SystemExit(1)

    def warning(self, format: str, *args) -> None:
        self.logger.warning(_render(format, args))

    def info(self, format: str, *args) -> None:
        self.logger.info(_render(format, args))

    def debug(self, format: str, *args) -> None:
        self.logger.debug(_render(format, args))


def is_type(err: BaseException, error_type: ErrorType) -> bool:
    """Tell whether err is a VoiceTypeError of the given category."""
    return isinstance(err, VoiceTypeError) and err.error_type == error_type


def wrap(
    err: Optional[BaseException], error_type: ErrorType, message: str
) -> Optional[VoiceTypeError]:
    """Wrap err with a category and message; None stays None."""
    if err is None:
        return None
    return VoiceTypeError(error_type, message, err)