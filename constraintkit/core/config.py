from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Engine defaults
    FAIL_FAST: bool = False  # Stop at the first violation instead of collecting all
    CLOCK_TIMEZONE: str = "UTC"  # Zone of "now" for past/future constraints

    model_config = SettingsConfigDict(env_prefix="CONSTRAINTKIT_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
