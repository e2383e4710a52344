import logging
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Visitrack"
    app_id: str = Field(default="", validation_alias=AliasChoices("app_id", "vite_app_id"))
    environment: str = Field(default="development")
    debug: bool = False
    log_level: str = Field(default="INFO")

    # Session cookie signing
    jwt_secret: str = Field(default=DEFAULT_SECRET_KEY)

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:5173", "http://localhost:3000"])

    # Database (optional - without it the user store and analytics are unavailable)
    database_url: str | None = Field(default=None)
    database_echo: bool = False

    # OAuth identity provider
    oauth_server_url: str = Field(default="")
    owner_open_id: str = Field(default="")
    http_timeout: float = Field(default=30.0)

    # Owner notifications
    notification_api_url: str = Field(
        default="",
        validation_alias=AliasChoices("notification_api_url", "built_in_forge_api_url"),
    )
    notification_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("notification_api_key", "built_in_forge_api_key"),
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_security(self) -> list[str]:
        """Return configuration problems. None of them stop the process."""
        warnings = []
        if self.jwt_secret == DEFAULT_SECRET_KEY and self.is_production:
            warnings.append(
                "JWT_SECRET is still the default value. Session cookies can be forged."
            )
        if not self.app_id:
            warnings.append("APP_ID is not set. Session tokens will be rejected.")
        if not self.oauth_server_url:
            warnings.append("OAUTH_SERVER_URL is not set. OAuth login will fail.")
        if not self.database_url:
            warnings.append("DATABASE_URL is not set. Running without a user store.")
        return warnings


@lru_cache
def get_settings() -> Settings:
    return Settings()
