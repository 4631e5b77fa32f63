"""Configuration management for cardscan.

Uses pydantic-settings to load configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> Path | None:
    """Search for .env file in the working directory and its parents."""
    check_dir = Path.cwd()
    for _ in range(5):
        if (check_dir / ".env").exists():
            return check_dir / ".env"
        parent = check_dir.parent
        if parent == check_dir:
            break
        check_dir = parent

    return None


_env_file = _find_env_file()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "staging", "production"] = "development"

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    # =========================
    # Collaborator credentials
    # =========================
    anthropic_api_key: str = Field(default="", repr=False)
    openai_api_key: str = Field(default="", repr=False)

    # =========================
    # Vision extraction
    # =========================
    vision_provider: Literal["anthropic", "openai"] = "anthropic"
    vision_model: str = "claude-sonnet-4-5"
    vision_timeout_seconds: float = Field(default=60.0, gt=0)

    # =========================
    # Text completion (OCR text structuring)
    # =========================
    text_provider: Literal["ollama", "openai", "anthropic"] = "ollama"
    text_model: str = "qwen2.5:1.5b"
    ollama_url: str = "http://127.0.0.1:11434"
    text_timeout_seconds: float = Field(default=30.0, gt=0)
    status_timeout_seconds: float = Field(default=5.0, gt=0)
    max_text_chars: int = Field(default=8000, ge=100)

    # =========================
    # OCR
    # =========================
    ocr_language: str = "eng"
    ocr_config: str = "--oem 3 --psm 3"
    # Engine is torn down after this many idle seconds (10 minutes)
    ocr_idle_timeout_seconds: float = Field(default=600.0, gt=0)

    # =========================
    # Limits
    # =========================
    max_image_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    max_contacts: int = Field(default=4, ge=1)
    max_bulk_images: int = Field(default=20, ge=1)
    bulk_concurrency: int = Field(default=4, ge=1)

    @property
    def vision_configured(self) -> bool:
        """Check whether the vision provider has a credential."""
        if self.vision_provider == "anthropic":
            return bool(self.anthropic_api_key)
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
