"""
Kubetask Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent


class KubetaskSettings(BaseSettings):
    """
    Kubetask configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in project root
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="KT_",  # All Kubetask env vars must start with KT_
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: KT_LOG_LEVEL)",
    )

    # Status reporting
    include_info: list[str] = Field(
        default_factory=list,
        description=(
            "Include-info keys applied when a Run does not set includeInfoOn, "
            "e.g. '[\"*\"]' or '[\"skipped-resources\"]' (env: KT_INCLUDE_INFO)"
        ),
    )

    # CLI output
    output_format: str = Field(
        default="table",
        description="CLI output format: table or json (env: KT_OUTPUT_FORMAT)",
    )


# Global settings instance
_settings: KubetaskSettings | None = None


def get_settings() -> KubetaskSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        KubetaskSettings instance
    """
    global _settings
    if _settings is None:
        _settings = KubetaskSettings()
    return _settings


def reload_settings() -> KubetaskSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh KubetaskSettings instance
    """
    global _settings
    _settings = KubetaskSettings()
    return _settings
