"""
Settings for the meeting point service, read from the environment (and .env)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

PLACEHOLDER_API_KEY = "your_api_key_here"
TRAVEL_MODES = ('driving', 'walking', 'bicycling', 'transit')

# Nearby Search rejects radii above 50 km
MIN_SEARCH_RADIUS_M = 100
MAX_SEARCH_RADIUS_M = 50000


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    search_radius_meters: int = 1000
    travel_mode: str = "driving"
    request_timeout_seconds: float = 10.0
    max_workers: int = 10
    browser_maps_enabled: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = "app.log"
    host: str = "0.0.0.0"
    port: int = 5001

    def __post_init__(self):
        if self.travel_mode not in TRAVEL_MODES:
            raise ConfigurationError(
                f"TRAVEL_MODE must be one of {', '.join(TRAVEL_MODES)}, got {self.travel_mode!r}"
            )
        if not MIN_SEARCH_RADIUS_M <= self.search_radius_meters <= MAX_SEARCH_RADIUS_M:
            raise ConfigurationError(
                f"SEARCH_RADIUS_METERS must be between {MIN_SEARCH_RADIUS_M} and {MAX_SEARCH_RADIUS_M}"
            )
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT_SECONDS must be positive")
        if self.max_workers < 1:
            raise ConfigurationError("MAX_WORKERS must be at least 1")

    @property
    def api_key_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from ``environ``, loading .env first when reading os.environ"""
        if environ is None:
            load_dotenv()
            environ = os.environ

        log_file = environ.get('LOG_FILE', 'app.log')
        return cls(
            api_key=environ.get('GOOGLE_MAPS_API_KEY') or None,
            search_radius_meters=_int(environ, 'SEARCH_RADIUS_METERS', 1000),
            travel_mode=environ.get('TRAVEL_MODE', 'driving').strip().lower(),
            request_timeout_seconds=_float(environ, 'REQUEST_TIMEOUT_SECONDS', 10.0),
            max_workers=_int(environ, 'MAX_WORKERS', 10),
            browser_maps_enabled=_bool(environ, 'BROWSER_MAPS_ENABLED', True),
            log_level=environ.get('LOG_LEVEL', 'INFO').upper(),
            log_file=log_file or None,
            host=environ.get('HOST', '0.0.0.0'),
            port=_int(environ, 'PORT', 5001),
        )


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')
