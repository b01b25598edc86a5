from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHOREQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str
    redis_url: str
    app_env: str = "development"
    queue_name: str = "chorequest:jobs"
    cors_allowed_origins: str = "http://localhost:3000"
    timezone: str = "UTC"
    approved_visibility_hours: int = Field(default=24, ge=0)
    level_up_dismiss_seconds: float = Field(default=5.0, gt=0)
    recurring_check_interval_seconds: int = Field(default=3600, ge=1)
    recurring_check_on_startup: bool = True
    allow_status_override: bool = True


settings = Settings()
