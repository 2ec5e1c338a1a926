"""Configuration management for the deposition simulator."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    DEPOSIM_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Provider defaults (keys are optional; users may supply their own per session)
    DEFAULT_PROVIDER: str = Field(default="openai", description="Default LLM provider id")
    DEFAULT_MODEL: str | None = Field(
        default=None, description="Default model (falls back to the provider default)"
    )
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    GEMINI_API_KEY: str | None = Field(default=None, description="Google Gemini API key")
    OLLAMA_BASE_URL: str = Field(
        default="http://localhost:11434", description="Local Ollama server URL"
    )

    # Gateway behaviour
    LLM_TIMEOUT_SECONDS: float = Field(default=60.0, description="Per-call provider timeout")
    LLM_MAX_TOKENS: int = Field(default=1024, description="Max output tokens per call")
    LLM_MAX_RETRIES: int = Field(default=3, description="Total attempts for retryable errors")
    LLM_RETRY_INITIAL_DELAY: float = Field(
        default=1.0, description="Initial backoff delay in seconds"
    )

    # Document registry limits
    DOCUMENT_MAX_TOKENS: int = Field(
        default=10_000, description="Token ceiling across all registered documents"
    )
    DOCUMENT_MAX_COUNT: int = Field(
        default=26, description="Max documents kept in a registry (capped at 26, one per letter)"
    )
    DOCUMENT_SUMMARY_THRESHOLD: int = Field(
        default=2_000, description="Documents above this token count get a summary"
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=50 * 1024 * 1024, description="Max raw upload size in bytes"
    )

    # Scenario data
    SCENARIO_MANIFEST_PATH: str = Field(
        default="scenarios/documentManifest.json",
        description="Path to the pre-built document manifest",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If environment variables are malformed
    """
    return Settings()
