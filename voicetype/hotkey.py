"""Global hotkey detection by polling X11 or Wayland input tools."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import ErrorType, Handler, VoiceTypeError, wrap

log = logging.getLogger(__name__)

DEFAULT_CTRL_CODES = ("37", "105")
DEFAULT_SPACE_CODES = ("65",)
FALLBACK_KEYBOARD_ID = "3"

_X11_INTERVAL = 0.04
_WAYLAND_INTERVAL = 0.03
_GENERIC_INTERVAL = 1.0
_DEBOUNCE = 0.4

_NUMBER = re.compile(r"[+-]?\d+")

_XDOTOOL_NAMES = {
    "Ctrl+Space": "ctrl+space",
    "ctrl+space": "ctrl+space",
    "Enter": "Return",
    "enter": "Return",
    "Return": "Return",
    "F5": "F5",
    "f5": "F5",
    "F6": "F6",
    "f6": "F6",
    "F12": "F12",
    "f12": "F12",
}


def hotkey_to_xdotool(hotkey: str) -> str:
    """Translate a configured hotkey into the key name xdotool/ydotool expect."""
    return _XDOTOOL_NAMES.get(hotkey, hotkey)


def parse_keycodes(xmodmap_output: str, *args: str) -> List[str]:
    """Find the keycodes bound to the given keysym names in xmodmap output."""
    lines = xmodmap_output.split("\n")
    codes: List[str] = []
    for name in args:
        patterns = (f" {name} ", f" {name})", f"({name})", f"= {name}")
        for line in lines:
            if not any(pattern in line for pattern in patterns):
                continue
            tokens = line.split()
            if len(tokens) < 2:
                continue
            if tokens[0] == "keycode":
                codes.append(tokens[1])
            elif _NUMBER.match(tokens[0]):
                codes.append(tokens[0])
    return codes


def parse_keyboard_id(xinput_output: str) -> str:
    """Pick the first real slave keyboard from `xinput list` output."""
    for line in xinput_output.split("\n"):
        if (
            "slave" in line
            and ("keyboard" in line or "Keyboard" in line)
            and "XTEST" not in line
            and "id=" in line
        ):
            tokens = line.split("id=")[1].split()
            if tokens:
                return tokens[0]
    return FALLBACK_KEYBOARD_ID


def _available(tool: str) -> bool:
    return shutil.which(tool) is not None


def _combined_output(args: Sequence[str]) -> Tuple[str, bool]:
    """Run a command; return its merged output and whether it succeeded."""
    try:
        result = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError:
        return "", False
    return result.stdout or "", result.returncode == 0


def _succeeds(args: Sequence[str]) -> bool:
    try:
        result = subprocess.run(
            list(args),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0


class HotkeyListener:
    """Watches the keyboard for a hotkey and calls back on press and release."""

    def __init__(self, err_handler: Optional[Handler] = None) -> None:
        self.err_handler = err_handler
        self.hotkey = ""
        self._on_press: Optional[Callable[[], None]] = None
        self._on_release: Optional[Callable[[], None]] = None
        self._running = False
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def initialize(self, hotkey: str) -> None:
        """Choose a detection method for this session and start polling."""
        self.hotkey = hotkey
        self._stop = threading.Event()
        try:
            self._detect_and_setup()
        except (OSError, RuntimeError) as exc:
            raise wrap(exc, ErrorType.HOTKEY, "failed to setup hotkey") from exc
        log.info("Hotkey listener initialized: %s", hotkey)

    def _spawn(self, target: Callable[[], None]) -> None:
        threading.Thread(target=target, daemon=True).start()

    def _detect_and_setup(self) -> None:
        if "wayland" in os.environ.get("WAYLAND_DISPLAY", ""):
            if _available("xdotool"):
                log.info("Using xdotool for hotkey detection (Wayland)")
                self._spawn(self._poll_x11)
                return
            self._setup_wayland()
            return
        if ":" in os.environ.get("DISPLAY", ""):
            self._setup_x11()
            return
        log.warning("No display detected, using fallback hotkey method")
        self._spawn(self._poll_generic)

    def _setup_x11(self) -> None:
        if _available("xdotool"):
            log.info("Using xdotool for hotkey detection")
            self._spawn(self._poll_x11)
            return
        log.warning("No hotkey tool found. Install xdotool: sudo apt install xdotool")
        self._spawn(self._poll_generic)

    def _setup_wayland(self) -> None:
        if _available("ydotool"):
            log.info("Using ydotool for Wayland hotkey detection")
            self._spawn(self._poll_wayland)
            return
        log.warning("Using generic polling for Wayland hotkey detection")
        log.warning("Please install ydotool for Wayland support")
        self._spawn(self._poll_generic)

    def _find_keyboard_id(self) -> str:
        output, _ = _combined_output(["xinput", "list"])
        return parse_keyboard_id(output)

    def _resolve_keycodes(self, *names: str) -> List[str]:
        output, ok = _combined_output(["xmodmap", "-pk"])
        if not ok:
            log.warning("Could not run xmodmap to resolve keycodes")
            return []
        return parse_keycodes(output, *names)

    def _poll_x11(self) -> None:
        keyboard_id = self._find_keyboard_id()
        if not keyboard_id:
            log.info("Could not find keyboard ID, falling back to generic polling")
            self._poll_generic()
            return

        ctrl_codes: Sequence[str] = self._resolve_keycodes("Control_L", "Control_R")
        space_codes: Sequence[str] = self._resolve_keycodes("space")
        if not ctrl_codes or not space_codes:
            log.warning(
                "Could not resolve keycodes (ctrl: %s, space: %s), using defaults",
                ctrl_codes,
                space_codes,
            )
            ctrl_codes, space_codes = DEFAULT_CTRL_CODES, DEFAULT_SPACE_CODES

        log.info(
            "Monitoring keyboard ID %s for hotkeys (Ctrl: %s, Space: %s)",
            keyboard_id,
            list(ctrl_codes),
            list(space_codes),
        )

        last_toggle = time.monotonic()
        pressed = False
        while not self._stop.is_set():
            state, _ = _combined_output(["xinput", "query-state", keyboard_id])
            ctrl_down = any(f"key[{code}]=down" in state for code in ctrl_codes)
            space_down = any(f"key[{code}]=down" in state for code in space_codes)
            down = ctrl_down and space_down

            if down and not pressed:
                now = time.monotonic()
                if now - last_toggle > _DEBOUNCE:
                    log.info("Hotkey Detected: Ctrl + Space")
                    self._fire(self._on_press)
                    pressed = True
                    last_toggle = now
            elif not down and pressed:
                pressed = False

            self._stop.wait(_X11_INTERVAL)

    def _poll_wayland(self) -> None:
        key_name = hotkey_to_xdotool(self.hotkey)
        log.info("Wayland polling for key: %s", key_name)
        was_pressed = False
        while not self._stop.is_set():
            pressed = _succeeds(["ydotool", "key", "--delay", "0", key_name])
            if pressed and not was_pressed:
                log.info("Hotkey pressed")
                self._fire(self._on_press)
                was_pressed = True
            elif not pressed and was_pressed:
                log.info("Hotkey released")
                self._fire(self._on_release)
                was_pressed = False
            self._stop.wait(_WAYLAND_INTERVAL)

    def _poll_generic(self) -> None:
        log.warning("No hotkey detection method available")
        log.warning("Please install xdotool: sudo apt install xdotool")
        while not self._stop.is_set():
            if _available("xdotool"):
                log.info("xdotool detected, switching to xdotool polling")
                self._spawn(self._poll_x11)
                return
            self._stop.wait(_GENERIC_INTERVAL)

    def _fire(self, callback: Optional[Callable[[], None]]) -> None:
        with self._lock:
            target = callback
        if target is not None:
            threading.Thread(target=target, daemon=True).start()

    def on_press(self, callback: Callable[[], None]) -> None:
        """Set the function called when the hotkey goes down."""
        with self._lock:
            self._on_press = callback

    def on_release(self, callback: Callable[[], None]) -> None:
        """Set the function called when the hotkey comes up."""
        with self._lock:
            self._on_release = callback

    def start(self) -> None:
        """Mark the listener as running; raises if it already is."""
        with self._lock:
            if self._running:
                raise VoiceTypeError(ErrorType.HOTKEY, "hotkey listener already running")
            self._running = True
        log.info("Started hotkey listener for key: %s", self.hotkey)

    def stop(self) -> None:
        """Mark the listener as stopped."""
        with self._lock:
            if self._running:
                self._running = False
                log.info("Hotkey listener stopped")

    def close(self) -> None:
        """Stop all polling and the listener."""
        self._stop.set()
        self.stop()

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def __enter__(self) -> "HotkeyListener":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()