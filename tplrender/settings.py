from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

Mode = Literal["development", "production"]

DEV: Mode = "development"
PROD: Mode = "production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TPLRENDER_", case_sensitive=False)

    env: Mode = DEV
    bind_host: str = "127.0.0.1"
    bind_port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def current_mode() -> Mode:
    """Read the process mode from the environment on every call."""
    return Settings().env
