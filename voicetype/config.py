"""Application configuration: defaults, config file and environment."""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass
class Config:
    """Settings for VoiceType."""

    groq_api_key: str = ""
    hotkey: str = "ctrl+space"
    audio_device: str = ""
    disable_notifications: bool = False
    verbose: bool = False
    model: str = "whisper-large-v3"
    temperature: float = 0.0
    auto_return: bool = True

    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        """Write the configuration as JSON, readable only by the owner."""
        target = Path(path) if path else get_config_path()
        data = json.dumps(asdict(self), indent=2)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)


def default_config() -> Config:
    """Return the default configuration."""
    return Config()


def _read_file_values(path: Path) -> Optional[Dict[str, Any]]:
    """Read the config file; None if it is missing or malformed."""
    try:
        raw = json.loads(path.read_bytes())
    except (OSError, ValueError):
        return None
    if not isinstance(raw, dict):
        return None
    values: Dict[str, Any] = {}
    for field in fields(Config):
        value = raw.get(field.name)
        if value is None:
            continue
        if field.type in ("float", float):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            value = float(value)
        elif field.type in ("bool", bool):
            if not isinstance(value, bool):
                return None
        elif not isinstance(value, str):
            return None
        values[field.name] = value
    return values


def load() -> Config:
    """Load settings from defaults, the config file and the environment."""
    cfg = default_config()

    try:
        path: Optional[Path] = get_config_path()
    except (OSError, RuntimeError):
        path = None

    file_values = _read_file_values(path) if path is not None else None
    if file_values is not None:
        for name in ("groq_api_key", "hotkey", "audio_device", "model"):
            if file_values.get(name):
                setattr(cfg, name, file_values[name])
        cfg.auto_return = file_values.get("auto_return", False)
        cfg.disable_notifications = file_values.get("disable_notifications", False)
        cfg.verbose = file_values.get("verbose", False)
        cfg.temperature = file_values.get("temperature", 0.0)

    env = os.environ
    if env.get("GROQ_API_KEY"):
        cfg.groq_api_key = env["GROQ_API_KEY"]
    if env.get("VOICE_TYPE_HOTKEY"):
        cfg.hotkey = env["VOICE_TYPE_HOTKEY"]
    if env.get("VOICE_TYPE_AUDIO_DEVICE"):
        cfg.audio_device = env["VOICE_TYPE_AUDIO_DEVICE"]
    if env.get("VOICE_TYPE_MODEL"):
        cfg.model = env["VOICE_TYPE_MODEL"]
    temperature = env.get("VOICE_TYPE_TEMPERATURE", "")
    if temperature:
        match = _FLOAT_PREFIX.match(temperature)
        if match:
            cfg.temperature = float(match.group().strip())
    if env.get("VOICE_TYPE_NOTIFICATIONS") == "0":
        cfg.disable_notifications = True
    if env.get("VOICE_TYPE_VERBOSE") == "1":
        cfg.verbose = True

    return cfg


def get_config_path() -> Path:
    """Return the config file path, creating its directory if needed."""
    config_dir = Path.home() / ".config" / "voicetype"
    config_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    return config_dir / "config.json"