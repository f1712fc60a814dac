from calsync.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Calendar sync engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CALSYNC_",
        case_sensitive=False,
    )

    SERVICE_NAME: str = Field(default="calendar-sync", description="Service name")
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )

    # Logging configuration
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
        validation_alias=AliasChoices("CALSYNC_LOG_LEVEL", "LOG_LEVEL"),
    )
    LOG_FORMAT: str = Field(
        default="json",
        description="Log format (json or text)",
        validation_alias=AliasChoices("CALSYNC_LOG_FORMAT", "LOG_FORMAT"),
    )

    # Sync behaviour
    FETCH_TIMEOUT_SECONDS: float = Field(
        default=0.0,
        description="Per-account fetch timeout in seconds (0 disables it)",
    )
    MAIL_KEYWORD_PREFILTER: bool = Field(
        default=False,
        description="Skip messages without event keywords before extraction",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
