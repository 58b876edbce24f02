"""PanelCalc configuration management.

Loads configuration from environment variables with sensible defaults.
Matching heuristics (threshold, mismatch penalty, batch size) are exposed
here so deployments can tune them without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class MatchingConfig:
    """Part matching normalization and confidence settings."""

    normalize_whitespace: bool = True
    normalize_case: bool = True
    match_threshold: float = 0.9
    manufacturer_mismatch_confidence: float = 0.8
    manual_entry_confidence: float = 0.5
    batch_size: int = 50


@dataclass
class PackageImportConfig:
    """Project package import/export settings."""

    max_name_attempts: int = 100
    unknown_location_name: str = "Unknown"


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    templates_path: Path = field(
        default_factory=lambda: Path.home() / ".panelcalc" / "mapping_templates.json"
    )

    matching: MatchingConfig = field(default_factory=MatchingConfig)
    packages: PackageImportConfig = field(default_factory=PackageImportConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: async SQLAlchemy connection string

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - MATCH_*: matching heuristics
        - PACKAGE_*: project package import settings

        Raises:
            KeyError: If required environment variables are missing
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./panelcalc.db"
            )

        templates_path = os.getenv("PANELCALC_TEMPLATES_PATH")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            templates_path=(
                Path(templates_path)
                if templates_path
                else Path.home() / ".panelcalc" / "mapping_templates.json"
            ),
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=_env_bool("DB_ECHO", "false"),
            ),
            matching=MatchingConfig(
                normalize_whitespace=_env_bool("MATCH_NORMALIZE_WHITESPACE", "true"),
                normalize_case=_env_bool("MATCH_NORMALIZE_CASE", "true"),
                match_threshold=float(os.getenv("MATCH_THRESHOLD", "0.9")),
                manufacturer_mismatch_confidence=float(
                    os.getenv("MATCH_MANUFACTURER_MISMATCH_CONFIDENCE", "0.8")
                ),
                manual_entry_confidence=float(
                    os.getenv("MATCH_MANUAL_ENTRY_CONFIDENCE", "0.5")
                ),
                batch_size=int(os.getenv("MATCH_BATCH_SIZE", "50")),
            ),
            packages=PackageImportConfig(
                max_name_attempts=int(os.getenv("PACKAGE_MAX_NAME_ATTEMPTS", "100")),
                unknown_location_name=os.getenv("PACKAGE_UNKNOWN_LOCATION", "Unknown"),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
