"""Configuration and environment variable handling.

This module centralises configuration for the relief map. It loads
settings from a ``.env`` file if present and exposes them via a
``Config`` dataclass. Create a ``.env`` file at the project root (see
``.env.example``) or set the corresponding environment variables in your
shell to point the app at a different feed.

The map is centred on Sri Lanka by default. To add configuration options,
extend the ``Config`` dataclass and ``load_config`` accordingly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_STALE_THRESHOLD_MS = 24 * 60 * 60 * 1000
DEFAULT_SYSTEM_COLUMNS: Tuple[str, ...] = ("id", "lat", "lng", "status", "updated_at")
DEFAULT_MAP_STYLE = "open-street-map"


@dataclass(frozen=True)
class Config:
    """Simple configuration holder loaded from environment variables."""

    # Location of the tabular site feed: an http(s) URL or a local JSON file.
    data_url: str = "rations.json"
    # Optional metadata document carrying ``lastUpdated``.
    metadata_url: str | None = "metadata.json"
    # Records older than this are shown as stale.
    stale_threshold_ms: int = DEFAULT_STALE_THRESHOLD_MS
    # Fields never shown in the generic detail table.
    system_columns: Tuple[str, ...] = DEFAULT_SYSTEM_COLUMNS
    # Seconds to wait for the feed or metadata endpoint.
    request_timeout: float = 10.0
    map_center_lat: float = 7.9
    map_center_lng: float = 81.0
    map_zoom: int = 6
    # Plotly tile style, e.g. "open-street-map" or "carto-positron".
    map_style: str = DEFAULT_MAP_STYLE


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid value %r for %s; using %s", raw, name, default)
        return default


def _env_columns(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(col.strip() for col in raw.split(",") if col.strip())


def load_config(env_path: str = ".env") -> Config:
    """Load configuration values from environment variables and return a Config object.

    The function reads a ``.env`` file if it exists using the
    ``python-dotenv`` package, then falls back to the current environment.
    Numeric values that cannot be parsed keep their defaults.

    Parameters
    ----------
    env_path: str
        Optional path to a ``.env`` file. Defaults to ``.env`` in the
        current working directory.

    Returns
    -------
    Config
        A configuration object with attributes populated from the
        environment.
    """
    if os.path.exists(env_path):
        load_dotenv(env_path)

    metadata_url = os.getenv("RELIEF_METADATA_URL", "metadata.json")
    return Config(
        data_url=os.getenv("RELIEF_DATA_URL", "rations.json"),
        metadata_url=metadata_url or None,
        stale_threshold_ms=_env_number("STALE_THRESHOLD_MS", DEFAULT_STALE_THRESHOLD_MS, int),
        system_columns=_env_columns("SYSTEM_COLUMNS", DEFAULT_SYSTEM_COLUMNS),
        request_timeout=_env_number("REQUEST_TIMEOUT", 10.0, float),
        map_center_lat=_env_number("MAP_CENTER_LAT", 7.9, float),
        map_center_lng=_env_number("MAP_CENTER_LNG", 81.0, float),
        map_zoom=_env_number("MAP_ZOOM", 6, int),
        map_style=os.getenv("MAP_STYLE", "").strip() or DEFAULT_MAP_STYLE,
    )
