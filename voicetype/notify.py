"""Desktop notifications through notify-send or dunstify."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional

from .errors import ErrorType, Handler, VoiceTypeError

log = logging.getLogger(__name__)

APP_NAME = "VoiceType"
_OTHER_DAEMONS = ("dunstify", "knotify", "xfce4-notifyd")


def _available(tool: str) -> bool:
    return shutil.which(tool) is not None


class Notifier:
    """Sends desktop notifications once initialized."""

    def __init__(self, err_handler: Optional[Handler] = None) -> None:
        self.err_handler = err_handler
        self._ready = False

    def initialize(self) -> None:
        """Look for a notification tool and enable notifications."""
        if not _available("notify-send") and not any(
            _available(tool) for tool in _OTHER_DAEMONS
        ):
            log.warning("No notification daemon found, notifications may not appear")
        self._ready = True
        log.info("Notification system initialized")

    def _send(self, tool: str, icon: str, urgency: str, title: str, message: str) -> None:
        command = [
            tool,
            f"--app-name={APP_NAME}",
            f"--icon={icon}",
            f"--urgency={urgency}",
            title,
            message,
        ]
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise VoiceTypeError(
                ErrorType.UI, f"{tool} failed: {exc}, output: "
            ) from exc
        if result.returncode != 0:
            raise VoiceTypeError(
                ErrorType.UI,
                f"{tool} failed: exit status {result.returncode}, "
                f"output: {result.stdout or ''}",
            )

    def notify(self, title: str, message: str) -> None:
        """Show a normal notification; only logs when not initialized."""
        if not self._ready:
            log.info("Notification (disabled): %s: %s", title, message)
            return
        if _available("notify-send"):
            self._send("notify-send", "microphone", "normal", title, message)
            return
        if _available("dunstify"):
            self._send("dunstify", "microphone", "normal", title, message)
            return
        log.info("Notification: %s - %s", title, message)

    def notify_error(self, title: str, message: str) -> None:
        """Show a critical error notification."""
        if not self._ready:
            log.info("Error notification: %s: %s", title, message)
            return
        if _available("notify-send"):
            self._send("notify-send", "dialog-error", "critical", title, message)
            return
        log.info("Error notification: %s - %s", title, message)

    def notify_success(self, title: str, message: str) -> None:
        """Show a success notification."""
        self.notify(title, message)

    def notify_with_timeout(self, title: str, message: str, timeout: float) -> None:
        """Show a notification; the timeout (seconds) is left to the daemon."""
        if not self._ready:
            log.info("Notification (timeout=%ss): %s: %s", timeout, title, message)
            return
        self.notify(title, message)

    def close(self) -> None:
        """Disable notifications."""
        self._ready = False
        log.info("Notification system closed")

    def is_ready(self) -> bool:
        return self._ready