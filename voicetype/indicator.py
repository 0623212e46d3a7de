"""On-screen recording indicator driven by desktop dialog tools."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from contextlib import suppress
from typing import List, Optional

from .errors import ErrorType, Handler, VoiceTypeError

log = logging.getLogger(__name__)

WINDOW_NAME = "VoiceType Recording"


def _available(tool: str) -> bool:
    return shutil.which(tool) is not None


class RecordingIndicator:
    """Shows and hides a small "Recording..." indicator."""

    def __init__(self, err_handler: Optional[Handler] = None) -> None:
        self.err_handler = err_handler
        self._visible = False
        self._process: Optional[subprocess.Popen] = None

    def _warn(self, fmt: str, *args: object) -> None:
        if self.err_handler is not None:
            self.err_handler.warning(fmt, *args)
        else:
            log.warning(fmt, *args)

    def show(self) -> None:
        """Show the indicator unless it is already visible."""
        if self._visible:
            return
        try:
            self._show_indicator()
        except VoiceTypeError as exc:
            self._warn("Failed to show recording indicator: %s", exc)
            return
        self._visible = True
        log.info("Recording indicator shown")

    def hide(self) -> None:
        """Hide the indicator if it is visible."""
        if not self._visible:
            return
        try:
            self._hide_indicator()
        except VoiceTypeError as exc:
            self._warn("Failed to hide recording indicator: %s", exc)
            return
        self._visible = False
        log.info("Recording indicator hidden")

    def toggle(self) -> None:
        """Flip the indicator between shown and hidden."""
        if self._visible:
            self.hide()
        else:
            self.show()

    def is_visible(self) -> bool:
        return self._visible

    def close(self) -> None:
        """Hide the indicator and shut down."""
        self.hide()
        log.info("UI system closed")

    def set_status(self, status: str) -> None:
        """Record a status message for the indicator."""
        log.info("UI Status: %s", status)

    def pulse(self) -> None:
        """Mark a pulse of the indicator."""
        log.info("UI Pulse effect")

    def _show_indicator(self) -> None:
        if "wayland" in os.environ.get("WAYLAND_DISPLAY", ""):
            log.warning("Wayland indicator not fully implemented")
            return
        if ":" in os.environ.get("DISPLAY", ""):
            self._show_x11()
            return
        log.warning("No display detected, using fallback notification")

    def _show_x11(self) -> None:
        if _available("yad"):
            self._spawn(
                [
                    "yad",
                    "--notification",
                    "--image=audio-input-microphone",
                    "--text=Recording...",
                    "--no-middle",
                    "--timeout=3600",
                    "--kill-parent",
                ]
            )
            return
        if _available("zenity"):
            self._spawn(
                [
                    "zenity",
                    "--notification",
                    "--text=Recording...",
                    "--window-icon=audio-input-microphone",
                ]
            )
            return
        self._show_xdotool()

    def _spawn(self, args: List[str]) -> None:
        try:
            self._process = subprocess.Popen(
                args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
            )
        except OSError as exc:
            raise VoiceTypeError(ErrorType.UI, f"failed to start {args[0]}", exc) from exc

    def _show_xdotool(self) -> None:
        args = ["xdotool", "getactivewindow", "set_window", "--name", WINDOW_NAME]
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            log.warning("Could not set window name: %s", exc)
        else:
            if result.returncode != 0:
                log.warning(
                    "Could not set window name: exit status %d", result.returncode
                )
        log.info("Recording indicator active (using xdotool fallback)")

    def _hide_indicator(self) -> None:
        process, self._process = self._process, None
        if process is not None:
            try:
                process.terminate()
            except OSError as exc:
                log.warning("Failed to kill indicator process: %s", exc)
            else:
                with suppress(subprocess.TimeoutExpired, OSError):
                    process.wait(timeout=1.0)

        if _available("pkill"):
            for pattern in ("yad.*VoiceType", "zenity.*VoiceType"):
                with suppress(OSError):
                    subprocess.run(
                        ["pkill", "-f", pattern],
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL,
                        check=False,
                    )

    def __enter__(self) -> "RecordingIndicator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()