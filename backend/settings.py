from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_anon_key: str = Field(..., alias="SUPABASE_ANON_KEY")
    supabase_service_role_key: str | None = Field(None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_jwt_secret: str = Field(..., alias="SUPABASE_JWT_SECRET")

    functions_base_url_raw: str | None = Field(None, alias="FUNCTIONS_BASE_URL")
    storage_bucket: str = Field("media", alias="STORAGE_BUCKET")
    app_base_url: str = Field("http://localhost:8501", alias="APP_BASE_URL")
    default_client_password: str = Field("lifehabits2026", alias="DEFAULT_CLIENT_PASSWORD")

    vapid_public_key: str | None = Field(None, alias="VAPID_PUBLIC_KEY")
    vapid_private_key: str | None = Field(None, alias="VAPID_PRIVATE_KEY")
    vapid_email: str = Field("admin@lifehabits.app", alias="VAPID_EMAIL")

    push_timezone: str = Field("Europe/Rome", alias="PUSH_TIMEZONE")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def functions_base_url(self) -> str:
        if self.functions_base_url_raw:
            return self.functions_base_url_raw.rstrip("/")
        return f"{self.supabase_url.rstrip('/')}/functions/v1"

    @property
    def service_key(self) -> str:
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def vapid_configured(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)

    @property
    def vapid_claims(self) -> dict:
        return {"sub": f"mailto:{self.vapid_email}"}


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("BACKEND_DEBUG_SETTINGS"):
    print(get_settings())
