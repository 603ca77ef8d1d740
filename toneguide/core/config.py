"""Configuration management for the tone-of-voice guide pipeline."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")
    OPENAI_MAX_RETRIES: int = Field(
        default=2, ge=0, description="Retries per OpenAI call on transient API errors"
    )
    OPENAI_RETRY_INITIAL_DELAY_SECONDS: float = Field(
        default=1.0, ge=0, description="First retry delay; doubles on each retry"
    )

    # Environment
    TONEGUIDE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # Style rule generation
    STYLE_RULES_MODEL: str = Field(default="gpt-4o", description="Model for style rule generation")
    STYLE_RULES_PROMPT_VERSION: str = Field(
        default="style_rules_v2", description="Style rule prompt version for tracking"
    )
    STYLE_RULES_COUNT: int = Field(
        default=25, ge=1, description="Number of rules requested for a full guide"
    )
    STYLE_RULES_MAX_ATTEMPTS: int = Field(
        default=3, ge=1, description="Generation attempts before settling for fewer rules"
    )
    STYLE_RULES_MAX_TOKENS: int = Field(
        default=2000, description="Completion token cap for a rule generation call"
    )
    STYLE_RULES_REPAIR_MAX_TOKENS: int = Field(
        default=1000, description="Completion token cap for a rule repair call"
    )

    # Guide assembly
    TRAITS_CONTEXT_MAX_CHARS: int = Field(
        default=4000, description="Max chars of brand voice context passed to generators"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
