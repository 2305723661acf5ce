"""
Configuration management for the altimeter.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic numbers scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _parse_bool(value: str) -> bool:
    """Parse '1'/'true'/'yes' style flags."""
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class DatabaseConfig:
    """Track database configuration."""
    url: str = os.getenv('ALTIMETER_DATABASE_URL', 'sqlite:///tracks.sqlite')

    # Readers wait at most this long for a writer before falling back
    busy_timeout_seconds: float = float(os.getenv('ALTIMETER_DB_BUSY_TIMEOUT', '2.0'))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class AltimetryConfig:
    """Barometric computation settings."""
    default_qnh_hpa: float = float(os.getenv('ALTIMETER_DEFAULT_QNH_HPA', '1013.25'))

    # Vertical speed smoothing
    vsi_window_seconds: float = 2.0
    vsi_sample_count: int = 5


@dataclass(frozen=True)
class RecordingConfig:
    """Track recording cadence and background behaviour."""
    tick_interval_seconds: float = float(os.getenv('ALTIMETER_TICK_INTERVAL', '1.0'))

    # Two ticks closer than this are collapsed into one point
    min_point_interval_seconds: float = 0.9

    # Grace period requested from the host while backgrounded
    background_budget_seconds: float = float(os.getenv('ALTIMETER_BACKGROUND_BUDGET', '30'))
    background_safety_margin_seconds: float = 5.0


@dataclass(frozen=True)
class StorageConfig:
    """File locations outside the track database."""
    preferences_path: Path = Path(
        os.getenv('ALTIMETER_PREFERENCES_PATH', 'altimeter_preferences.json')
    )
    export_dir: Path = Path(os.getenv('ALTIMETER_EXPORT_DIR', 'exports'))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig
    altimetry: AltimetryConfig
    recording: RecordingConfig
    storage: StorageConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        database=DatabaseConfig(),
        altimetry=AltimetryConfig(),
        recording=RecordingConfig(),
        storage=StorageConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=_parse_bool(os.getenv('FLASK_DEBUG', '0')),
    )


# Singleton instance
config = load_config()
