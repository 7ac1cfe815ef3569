"""Settings persistence (TOML) and config schema."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import tomli_w

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config schema
# ---------------------------------------------------------------------------


@dataclass
class ApiConfig:
    base_url: str = "https://monkfish-app-nnhdy.ondigitalocean.app/api"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    # Chat completion settings sent with every reply request
    chat_model: str = "gpt-3.5-turbo"
    max_tokens: int = 300
    temperature: float = 0.9
    # Transcription carries its own upper bound; expiry counts as "no speech"
    transcribe_model: str = "whisper-1"
    transcribe_timeout: float = 30.0
    pricing_url: str = "https://skilledge.space/pricing"


@dataclass
class AudioConfig:
    sample_rate: int = 16000
    device: str = ""


@dataclass
class HotkeyConfig:
    # Global recording toggle, e.g. "ctrl+shift+space".  Empty = disabled.
    trigger: str = ""


@dataclass
class WindowConfig:
    content_protection: bool = True
    main_opacity: float = 0.92
    # Pause between picking an interview type and showing the main screen
    transition_delay_ms: int = 500


@dataclass
class SessionConfig:
    max_age_hours: float = 24.0


@dataclass
class AppConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    hotkey: HotkeyConfig = field(default_factory=HotkeyConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    language: str = "en"  # UI language code


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_app_dir() -> Path:
    """Return the per-user data directory (``~/.skilledge``).

    ``SKILLEDGE_HOME`` overrides the location (used by tests).
    """
    override = os.environ.get("SKILLEDGE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".skilledge"


def get_config_path() -> Path:
    """Return the path to the config file (``<app_dir>/config.toml``)."""
    return get_app_dir() / "config.toml"


def get_log_dir() -> Path:
    return get_app_dir() / "logs"


def _merge_into_dataclass(cls: type, data: dict) -> object:
    """Create a dataclass instance from *data*, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


def _deep_merge(defaults: dict, overrides: dict) -> dict:
    """Recursively merge *overrides* into *defaults* (non-destructive)."""
    merged = defaults.copy()
    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _dict_to_config(data: dict) -> AppConfig:
    """Build an AppConfig from a plain dict (e.g. parsed TOML)."""
    return AppConfig(
        api=_merge_into_dataclass(ApiConfig, data.get("api", {})),  # type: ignore[arg-type]
        audio=_merge_into_dataclass(AudioConfig, data.get("audio", {})),  # type: ignore[arg-type]
        hotkey=_merge_into_dataclass(HotkeyConfig, data.get("hotkey", {})),  # type: ignore[arg-type]
        window=_merge_into_dataclass(WindowConfig, data.get("window", {})),  # type: ignore[arg-type]
        session=_merge_into_dataclass(SessionConfig, data.get("session", {})),  # type: ignore[arg-type]
        language=str(data.get("language", "en")),
    )


def _config_to_dict(config: AppConfig) -> dict:
    """Convert an AppConfig to a plain dict suitable for TOML serialization."""
    return asdict(config)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config() -> AppConfig:
    """Load config from file, merge with defaults.

    Creates a default config file if one does not exist.  A file that cannot
    be parsed is logged and replaced by defaults in memory (the broken file
    is left untouched so the user can fix it).
    """
    path = get_config_path()

    if not path.exists():
        config = AppConfig()
        save_config(config)
        return config

    try:
        with open(path, "rb") as f:
            file_data = tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", path, exc)
        return AppConfig()

    default_data = _config_to_dict(AppConfig())
    merged = _deep_merge(default_data, file_data)
    return _dict_to_config(merged)


def save_config(config: AppConfig) -> None:
    """Save *config* to the TOML config file.

    Creates the app directory if it does not exist.
    """
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)
