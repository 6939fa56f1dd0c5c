"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SLOT_TEMPLATE = (
    "10:00 AM,10:30 AM,11:00 AM,11:30 AM,"
    "12:00 PM,12:30 PM,1:00 PM,1:30 PM,"
    "4:00 PM,4:30 PM,5:00 PM,5:30 PM"
)


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
    app_name: str = Field(default="Medibook Scheduler", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./medibook.db",
        alias="DATABASE_URL",
    )
    store_timeout_seconds: float = Field(default=10.0, alias="STORE_TIMEOUT_SECONDS")

    # Redis
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # Change notifications
    appointment_channel_prefix: str = Field(
        default="appointments",
        alias="APPOINTMENT_CHANNEL_PREFIX",
        description="Prefix for the Redis pub/sub channels appointment events go to",
    )

    # Scheduling
    slot_template_str: str = Field(
        default=DEFAULT_SLOT_TEMPLATE,
        alias="SLOT_TEMPLATE",
        description="Comma separated, ordered list of bookable time-of-day labels",
    )
    doctor_cache_ttl: int = Field(default=300, alias="DOCTOR_CACHE_TTL")

    @property
    def slot_template(self) -> list[str]:
        """Get the slot template as an ordered list of labels."""
        return [slot.strip() for slot in self.slot_template_str.split(",") if slot.strip()]

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
