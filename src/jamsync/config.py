"""Settings loaded from configs/jamsync.json, overridable through JAMSYNC_* variables."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_CONFIGS_DIR = Path(__file__).resolve().parents[2] / "configs"

_DEFAULT_CONFIG = "jamsync.json"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings.

    Attributes:
        default_bpm: BPM given to a session state created on first join.
        lyrics_base_url: Base URL of the timed-lyrics feed.
        lyrics_timeout_s: Timeout for each lyrics request.
        gap_threshold_s: Silence (seconds) that starts a new lyric section.
        tablature_base_url: Base URL of the tablature feed.
        tablature_search_timeout_s: Timeout for the tablature song search.
        tablature_revision_timeout_s: Timeout for the revision download.
        track_search_url: Track metadata search endpoint.
        track_search_timeout_s: Timeout for track metadata search.
        track_search_limit: Default number of search results.
        user_agent: User-Agent header sent to external feeds.
        cors_origins: Origins allowed by the API's CORS middleware.
    """

    default_bpm: int = 80
    lyrics_base_url: str = "https://lrclib.net/api"
    lyrics_timeout_s: float = 6.0
    gap_threshold_s: float = 3.0
    tablature_base_url: str = "https://www.songsterr.com/a/ra"
    tablature_search_timeout_s: float = 6.0
    tablature_revision_timeout_s: float = 8.0
    track_search_url: str = "https://itunes.apple.com/search"
    track_search_timeout_s: float = 8.0
    track_search_limit: int = 15
    user_agent: str = "JamSync/0.1"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


def load_config(config_name: str = _DEFAULT_CONFIG) -> dict:
    """Load a JSON config file from the configs/ directory.

    Returns an empty dict when the file is absent so that the built-in
    defaults apply.
    """
    config_path = _CONFIGS_DIR / config_name
    if not config_path.exists():
        return {}
    with open(config_path) as f:
        return json.load(f)


def _env(name: str, default):
    """Read ``JAMSYNC_<NAME>`` from the environment, coerced to the default's type."""
    raw = os.environ.get(f"JAMSYNC_{name}")
    if raw is None:
        return default
    if isinstance(default, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return type(default)(raw)


def load_settings(config: dict | None = None) -> Settings:
    """Resolve settings from environment variables (preferred) or the config file."""
    if config is None:
        config = load_config()

    base = Settings()
    session = config.get("session", {})
    lyrics = config.get("lyrics", {})
    tablature = config.get("tablature", {})
    track_search = config.get("track_search", {})
    http = config.get("http", {})
    cors = config.get("cors", {})

    return Settings(
        default_bpm=_env("DEFAULT_BPM", int(session.get("default_bpm", base.default_bpm))),
        lyrics_base_url=_env("LYRICS_BASE_URL", lyrics.get("base_url", base.lyrics_base_url)),
        lyrics_timeout_s=_env("LYRICS_TIMEOUT_S", float(lyrics.get("timeout_s", base.lyrics_timeout_s))),
        gap_threshold_s=_env(
            "GAP_THRESHOLD_S", float(lyrics.get("gap_threshold_s", base.gap_threshold_s)),
        ),
        tablature_base_url=_env(
            "TABLATURE_BASE_URL", tablature.get("base_url", base.tablature_base_url),
        ),
        tablature_search_timeout_s=_env(
            "TABLATURE_SEARCH_TIMEOUT_S",
            float(tablature.get("search_timeout_s", base.tablature_search_timeout_s)),
        ),
        tablature_revision_timeout_s=_env(
            "TABLATURE_REVISION_TIMEOUT_S",
            float(tablature.get("revision_timeout_s", base.tablature_revision_timeout_s)),
        ),
        track_search_url=_env(
            "TRACK_SEARCH_URL", track_search.get("base_url", base.track_search_url),
        ),
        track_search_timeout_s=_env(
            "TRACK_SEARCH_TIMEOUT_S",
            float(track_search.get("timeout_s", base.track_search_timeout_s)),
        ),
        track_search_limit=_env(
            "TRACK_SEARCH_LIMIT", int(track_search.get("limit", base.track_search_limit)),
        ),
        user_agent=_env("USER_AGENT", http.get("user_agent", base.user_agent)),
        cors_origins=_env("CORS_ORIGINS", list(cors.get("allow_origins", base.cors_origins))),
    )


_SETTINGS_CACHE: Settings | None = None


def get_settings() -> Settings:
    """Return process-wide settings, loading them on first use."""
    global _SETTINGS_CACHE  # noqa: PLW0603
    if _SETTINGS_CACHE is None:
        _SETTINGS_CACHE = load_settings()
    return _SETTINGS_CACHE
