"""Runtime settings for the stats and metrics core.

Values are read from the environment (prefix ``STATSCORE_``) or a local
``.env`` file.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Seconds between wall-clock recalibrations of the shared clock (0 = never)
    CLOCK_RECALIBRATION_INTERVAL_SECONDS: float = 60.0

    # Tag keys and values longer than this are rejected
    TAG_MAX_LENGTH: int = 255

    # sorted = legacy sort-before-join identity, ordered = positional identity
    LABEL_HASH_MODE: Literal["sorted", "ordered"] = "sorted"

    PROMETHEUS_PREFIX: str = "statscore"

    model_config = {
        "env_prefix": "STATSCORE_",
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings()
    return _settings_cache


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_cache
    _settings_cache = None
