"""Application configuration."""

from datetime import time
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Clinic Scheduler API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Redis
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")

    # JWT (tokens are issued by the identity service, only decoded here)
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Clinic calendar
    clinic_timezone: str = Field(default="UTC", alias="CLINIC_TIMEZONE")
    slot_day_start: time = Field(default=time(9, 0), alias="SLOT_DAY_START")
    slot_day_end: time = Field(default=time(17, 0), alias="SLOT_DAY_END")
    slot_interval_minutes: int = Field(default=30, ge=1, alias="SLOT_INTERVAL_MINUTES")
    slot_afternoon_start: time = Field(default=time(12, 0), alias="SLOT_AFTERNOON_START")
    slot_evening_start: time = Field(default=time(17, 0), alias="SLOT_EVENING_START")

    # Telemedicine
    telemedicine_base_url: str = Field(
        default="https://meet.jit.si",
        alias="TELEMEDICINE_BASE_URL",
    )
    telemedicine_room_prefix: str = Field(default="ADH", alias="TELEMEDICINE_ROOM_PREFIX")

    # Email notifications (Resend)
    resend_api_key: str = Field(
        default="",
        alias="RESEND_API_KEY",
        description="Resend API key; email notifications are skipped when empty",
    )
    email_from_address: str = Field(
        default="Clinic Scheduler <appointments@example.com>",
        alias="EMAIL_FROM_ADDRESS",
    )

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @field_validator("clinic_timezone")
    @classmethod
    def validate_clinic_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names at startup rather than on first booking."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v!r}") from e
        return v

    @model_validator(mode="after")
    def validate_slot_window(self) -> "Settings":
        """The slot day and its session boundaries must be ordered."""
        if self.slot_day_end < self.slot_day_start:
            raise ValueError("SLOT_DAY_END must not be before SLOT_DAY_START")
        if self.slot_evening_start < self.slot_afternoon_start:
            raise ValueError("SLOT_EVENING_START must not be before SLOT_AFTERNOON_START")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def clinic_tz(self) -> ZoneInfo:
        """Timezone in which slot offsets and civil dates are interpreted."""
        return ZoneInfo(self.clinic_timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
