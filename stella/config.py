"""
Application Configuration

Pydantic-based settings management using environment variables.
Settings are nested by concern and cached for the process lifetime.

Usage:
    from stella.config import get_settings

    settings = get_settings()
    print(settings.llm.default_provider)
    print(settings.pipeline.routing_mode)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["openai", "anthropic", "google"]


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    default_provider: ProviderName = Field(default="openai", description="Default LLM provider")
    classifier_provider: ProviderName | None = Field(
        None, description="Provider for the intent classifier (defaults to default_provider)"
    )
    sql_provider: ProviderName | None = Field(
        None, description="Provider for the query synthesizer (defaults to default_provider)"
    )

    # OpenAI
    openai_api_key: str | None = Field(None, description="OpenAI API key", min_length=20)
    openai_model: str = Field(default="gpt-4o", description="OpenAI model for SQL synthesis")
    openai_model_mini: str = Field(default="gpt-4o-mini", description="OpenAI lightweight model")

    # Anthropic
    anthropic_api_key: str | None = Field(None, description="Anthropic API key", min_length=20)
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022", description="Anthropic model for SQL synthesis"
    )
    anthropic_model_mini: str = Field(
        default="claude-3-5-haiku-20241022", description="Anthropic lightweight model"
    )

    # Google
    google_api_key: str | None = Field(None, description="Google AI API key")
    google_model: str = Field(default="gemini-1.5-pro", description="Gemini model for SQL synthesis")
    google_model_mini: str = Field(default="gemini-1.5-flash", description="Gemini lightweight model")

    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2000, gt=0, le=16000, description="Maximum tokens per response")
    timeout: int = Field(default=30, gt=0, description="Request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, v: str | None) -> str | None:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v

    @field_validator("anthropic_api_key")
    @classmethod
    def validate_anthropic_key(cls, v: str | None) -> str | None:
        """Validate Anthropic API key format."""
        if v and not v.startswith("sk-ant-"):
            raise ValueError("Anthropic API key must start with 'sk-ant-'")
        return v

    @model_validator(mode="after")
    def validate_provider_keys(self) -> "LLMSettings":
        """Ensure an API key is set for every selected provider."""
        provider_key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "google": self.google_api_key,
        }
        selected = {self.default_provider, self.classifier_provider, self.sql_provider}
        for provider in selected:
            if provider and not provider_key_map[provider]:
                raise ValueError(
                    f"API key required for {provider} provider. Set LLM_{provider.upper()}_API_KEY"
                )
        return self


class DatabaseSettings(BaseSettings):
    """Business database configuration."""

    url: AnyUrl | None = Field(None, description="PostgreSQL connection URL")
    pool_size: int = Field(default=5, gt=0, le=20, description="Connection pool size")
    pool_timeout: int = Field(default=30, gt=0, description="Connection timeout in seconds")
    statement_timeout: int = Field(
        default=15, gt=0, le=300, description="Per-statement timeout in seconds"
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | AnyUrl | None) -> str | AnyUrl | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: AnyUrl | None) -> AnyUrl | None:
        """Only PostgreSQL URLs are supported."""
        if v is None:
            return v
        parsed = urlparse(str(v))
        scheme = parsed.scheme.split("+")[0].lower() if parsed.scheme else ""
        if scheme not in {"postgres", "postgresql"}:
            raise ValueError("DATABASE_URL must use the postgresql scheme.")
        if not parsed.hostname:
            raise ValueError("DATABASE_URL must include a host.")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="Log timestamp format")
    file: Path | None = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class PipelineSettings(BaseSettings):
    """Routing and guardrail behaviour of the question pipeline."""

    routing_mode: Literal["three_tier", "two_tier"] = Field(
        default="three_tier",
        description=(
            "three_tier routes to conversational / operation_call / ad_hoc_query. "
            "two_tier routes every data question through SQL synthesis."
        ),
    )
    classifier_history_turns: int = Field(
        default=3, ge=0, le=20, description="History turns shown to the intent classifier."
    )
    conversational_history_turns: int = Field(
        default=4, ge=0, le=20, description="History turns shown to the conversational responder."
    )
    default_row_limit: int = Field(
        default=20, ge=1, le=1000, description="LIMIT the synthesizer is told to apply."
    )
    max_rows: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="LIMIT appended at the execution boundary when a statement has none.",
    )
    composer_sample_rows: int = Field(
        default=5, ge=1, le=50, description="Rows shown to the response composer."
    )
    completeness_check_enabled: bool = Field(
        default=True, description="Ask the model whether an ad-hoc question is answerable as-is."
    )
    shortcuts_enabled: bool = Field(
        default=True, description="Resolve canonical phrasings through the shortcut table."
    )
    schema_snapshot_cache_enabled: bool = Field(
        default=False, description="Reuse the introspected schema across requests."
    )
    schema_snapshot_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=604800,
        description="Schema snapshot TTL in seconds. 0 keeps it until invalidated.",
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        extra="ignore",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name used in logs and the health endpoint
        DEBUG: Enable debug mode
        API_HOST / API_PORT: Bind address for `stella serve`
        CORS_ORIGINS: Allowed browser origins
        LLM_*: see LLMSettings
        DATABASE_*: see DatabaseSettings
        LOG_*: see LoggingSettings
        PIPELINE_*: see PipelineSettings

    Example:
        >>> settings = get_settings()
        >>> settings.pipeline.routing_mode
        'three_tier'
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    app_name: str = Field(default="Stella", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, gt=0, le=65535, description="API server port")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "llm_provider": self.llm.default_provider,
                "routing_mode": self.pipeline.routing_mode,
                "database_configured": self.database.url is not None,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("STELLA_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: process-wide settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
