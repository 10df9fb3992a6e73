from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./clerk_sync.db"
    # Left empty rather than required so a missing secret rejects requests
    # instead of failing at import time.
    clerk_webhook_secret: str = ""
    webhook_tolerance_seconds: int = 300
    max_body_bytes: int = 1_048_576  # 1 MiB
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
