"""
Configuration loader for the Livescore API.

Settings come from a YAML file (default: config/livescore.yaml) layered
over built-in defaults, then overridden by environment variables. The
provider credential is read from the environment only and may be absent:
operations that need it fail, startup does not.
"""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config/livescore.yaml"

DEFAULTS: dict = {
    "server": {
        "host": "0.0.0.0",
        "port": 5000,
    },
    "upstream": {
        "base_url": "https://v3.football.api-sports.io",
        "timeout_seconds": 10.0,
        "timezone": "Africa/Lagos",
    },
    "cache": {
        "live_ttl_seconds": 30,
    },
    "featured": {
        "league_ids": [39, 140, 135, 78, 61, 2],
        "top_leagues": [
            "Premier League|England",
            "La Liga|Spain",
            "Bundesliga|Germany",
            "Serie A|Italy",
            "Ligue 1|France",
            "UEFA Champions League|Europe",
        ],
    },
    "metrics": {
        "enabled": False,
        "port": 9090,
    },
}


@dataclass(frozen=True)
class UpstreamSettings:
    base_url: str
    timeout_seconds: float
    timezone: str
    api_key: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    upstream: UpstreamSettings
    live_ttl_seconds: int
    featured_league_ids: tuple[int, ...]
    top_leagues: tuple[str, ...]
    metrics_enabled: bool
    metrics_port: int
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> dict:
    """Load the YAML configuration and merge it over the defaults."""
    config = copy.deepcopy(DEFAULTS)
    path = Path(config_path or os.getenv("LIVESCORE_CONFIG", DEFAULT_CONFIG_PATH))
    if not path.exists():
        if config_path:
            raise FileNotFoundError(f"Configuration file not found: {path}")
        return config

    with open(path, "r") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    for section, values in loaded.items():
        if section not in config:
            raise ValueError(f"Unknown config section: {section}")
        if not isinstance(values, dict):
            raise ValueError(f"Config section must be a mapping: {section}")
        config[section].update(values)

    _validate_config(config)
    return config


def _validate_config(config: dict) -> None:
    """Validate field types that would otherwise fail deep inside a request."""
    if not config["upstream"].get("base_url"):
        raise ValueError("upstream.base_url is required")

    if float(config["upstream"]["timeout_seconds"]) <= 0:
        raise ValueError("upstream.timeout_seconds must be positive")

    if int(config["cache"]["live_ttl_seconds"]) <= 0:
        raise ValueError("cache.live_ttl_seconds must be positive")

    for key in config["featured"]["top_leagues"]:
        if "|" not in key:
            raise ValueError(f"featured.top_leagues entry must be 'name|country': {key}")


def get_settings(config_path: Optional[str] = None) -> Settings:
    """Build Settings from the YAML config and the process environment."""
    load_dotenv()
    config = load_config(config_path)

    port = os.getenv("PORT")
    return Settings(
        host=config["server"]["host"],
        port=int(port) if port else int(config["server"]["port"]),
        upstream=UpstreamSettings(
            base_url=config["upstream"]["base_url"],
            timeout_seconds=float(config["upstream"]["timeout_seconds"]),
            timezone=config["upstream"]["timezone"],
            api_key=os.getenv("API_FOOTBALL_KEY") or None,
        ),
        live_ttl_seconds=int(config["cache"]["live_ttl_seconds"]),
        featured_league_ids=tuple(int(i) for i in config["featured"]["league_ids"]),
        top_leagues=tuple(config["featured"]["top_leagues"]),
        metrics_enabled=bool(config["metrics"]["enabled"]),
        metrics_port=int(config["metrics"]["port"]),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
