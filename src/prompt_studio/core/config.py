from typing import List
import logging

from pydantic import Field
from pydantic import field_validator
from pydantic import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    env: str = Field("development", alias="ENV")
    api_prefix: str = Field("/api", alias="API_PREFIX")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    allowed_origins_raw: str | None = Field(None, alias="ALLOWED_ORIGINS")

    # Remote prompt backend (projects, prompts, versions, runs, settings)
    backend_url: str = Field("http://backend:8000", alias="BACKEND_URL")
    backend_timeout_s: float = Field(30.0, alias="BACKEND_TIMEOUT_S")
    backend_verify_ssl: bool = Field(True, alias="BACKEND_VERIFY_SSL")

    # Defaults applied to a new prompt draft
    prompt_default_max_tokens: int = Field(2000, alias="PROMPT_DEFAULT_MAX_TOKENS")
    prompt_default_temperature: float = Field(0.7, alias="PROMPT_DEFAULT_TEMPERATURE")

    # Open wizard instances kept in memory
    wizard_max_open: int = Field(200, alias="WIZARD_MAX_OPEN")
    # Open wizards untouched for this long are evicted
    wizard_idle_ttl_s: float = Field(3600.0, alias="WIZARD_IDLE_TTL_S")

    @field_validator("backend_url", mode="before")
    @classmethod
    def _validate_backend_url(cls, v: str | None) -> str:
        val = (v or "").strip()
        if not val.startswith(("http://", "https://")):
            raise ValueError(f"BACKEND_URL must be an http(s) URL; got: {v!r}")
        return val.rstrip("/")

    @field_validator("backend_timeout_s", "wizard_idle_ttl_s")
    @classmethod
    def _validate_duration(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name.upper()} must be > 0")
        return float(v)

    @field_validator("prompt_default_max_tokens")
    @classmethod
    def _validate_default_max_tokens(cls, v: int) -> int:
        if not 1 <= v <= 8000:
            raise ValueError("PROMPT_DEFAULT_MAX_TOKENS must be within [1, 8000]")
        return int(v)

    @field_validator("prompt_default_temperature")
    @classmethod
    def _validate_default_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("PROMPT_DEFAULT_TEMPERATURE must be within [0, 1]")
        return float(v)

    @field_validator("wizard_max_open")
    @classmethod
    def _validate_positive_int(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name.upper()} must be > 0")
        return int(v)

    @property
    def allowed_origins(self) -> List[str]:
        if self.allowed_origins_raw:
            return [item.strip() for item in self.allowed_origins_raw.split(",") if item.strip()]
        return ["http://localhost:3000"]

    def log_startup_summary(self) -> None:
        """Log the effective backend wiring once the app starts."""
        log = logging.getLogger("studio.core.config")
        log.info(
            "Prompt backend: %s (timeout=%.1fs, verify_ssl=%s)",
            self.backend_url,
            self.backend_timeout_s,
            self.backend_verify_ssl,
        )
        if not self.backend_verify_ssl:
            log.warning(
                "Backend SSL verification disabled (BACKEND_VERIFY_SSL=%r). "
                "Use this setting only in controlled environments.",
                self.backend_verify_ssl,
            )


settings = Settings()
