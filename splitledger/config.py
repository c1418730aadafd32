from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    db_path: str = "ledger.json"
    ledger_currency: str = "USD"
    # Empty means the built-in USD-only table
    rates_path: str = ""
    rates_refresh_hours: float = 24
    history_limit: int = 5
    requests_limit: int = 5
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
