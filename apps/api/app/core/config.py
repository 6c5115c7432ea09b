from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Local CRM API"
    app_env: str = "local"
    app_debug: bool = True
    api_port: int = 4000
    database_url: str = "sqlite:///./data/crm.sqlite"
    session_secret: str = "local-crm-secret"
    session_algorithm: str = "HS256"
    session_cookie_name: str = "crm_session"
    session_max_age_seconds: int = 60 * 60 * 8
    cors_origins: list[str] = ["http://localhost:5173"]
    auto_create_schema: bool = False
    metrics_enabled: bool = False
    otel_enabled: bool = False
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    seed_admin_email: str = "admin@localcrm.test"
    seed_admin_password: str = "admin123"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
