"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Anthropic Claude SDK (vision inference)
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = Field(default=4096, ge=256, le=16384)
    anthropic_timeout: float = Field(default=120.0, gt=0)  # seconds

    # AWS Bedrock (alternative to direct Anthropic API)
    bedrock_enabled: bool = False
    bedrock_region: str = "us-east-1"
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"

    # Langfuse Observability
    langfuse_secret_key: str | None = None
    langfuse_public_key: str | None = None
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Playwright Settings
    playwright_headless: bool = True
    playwright_slow_mo: int = Field(default=0, ge=0, le=1000)  # ms between actions
    browser_timeout: int = Field(default=30000, ge=5000, le=120000)  # ms
    max_contexts: int = Field(default=4, ge=1, le=32)

    # Form automation
    submit_forms: bool = True  # False = dry run, fill but never submit
    debug_dir: str | None = None
    max_form_pages: int = Field(default=10, ge=1, le=50)
    verify_with_vision_always: bool = False

    # Representative directory
    legislators_file: str = "./data/legislators/federal/legislators-current.yaml"

    # CAPTCHA audit
    audit_results_file: str = "./data/form-audit-results.json"
    audit_checkpoint_file: str = "./data/form-audit-checkpoint.json"
    audit_screenshot_dir: str = "./data/audit-screenshots"
    audit_save_every: int = Field(default=10, ge=1)
    audit_delay_seconds: float = Field(default=0.5, ge=0)

    @property
    def model_id(self) -> str:
        """Model identifier for the configured inference backend."""
        if self.bedrock_enabled:
            return self.bedrock_model_id
        return self.anthropic_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience access
settings = get_settings()
