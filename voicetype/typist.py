"""Types text at the cursor by driving wtype or xdotool."""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from typing import List

from .errors import ErrorType, VoiceTypeError

TYPE_TIMEOUT = 10.0
ENTER_TIMEOUT = 2.0
_ENTER_PAUSE = 0.1


def _on_wayland() -> bool:
    return "wayland" in os.environ.get("WAYLAND_DISPLAY", "")


def _available(tool: str) -> bool:
    return shutil.which(tool) is not None


def _run(command: List[str], deadline: float) -> None:
    remaining = max(deadline - time.monotonic(), 0.0)
    subprocess.run(command, check=True, timeout=remaining)


class TextTyper:
    """Simulates keyboard input in the focused window."""

    def type_text(self, text: str, press_enter: bool = False) -> None:
        """Type text, then press Enter if asked; raises if no tool works."""
        deadline = time.monotonic() + TYPE_TIMEOUT

        if _on_wayland() and _available("wtype"):
            _run(["wtype", text], deadline)
            if press_enter:
                time.sleep(_ENTER_PAUSE)
                _run(["wtype", "-k", "Return"], deadline)
            return

        if _available("xdotool"):
            _run(["xdotool", "type", "--clearmodifiers", "--delay", "1", text], deadline)
            if press_enter:
                time.sleep(_ENTER_PAUSE)
                _run(["xdotool", "key", "Return"], deadline)
            return

        raise VoiceTypeError(
            ErrorType.TYPING, "no typing tool (wtype or xdotool) available"
        )

    def press_enter(self) -> None:
        """Press the Enter key."""
        deadline = time.monotonic() + ENTER_TIMEOUT
        if _on_wayland() and _available("wtype"):
            _run(["wtype", "-k", "Return"], deadline)
            return
        if _available("xdotool"):
            _run(["xdotool", "key", "Return"], deadline)
            return
        raise VoiceTypeError(ErrorType.TYPING, "no tool available to press Enter")