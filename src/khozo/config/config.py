"""
Configuration management for khozo using Pydantic.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, ClassVar, List, Optional, cast

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from khozo.extractor.models import TRUST_ORDER, MethodName

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class HttpConfig(BaseModel):
    """HTTP client configuration."""

    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds.")
    max_retries: int = Field(default=2, ge=0, description="Retry attempts for 429/5xx responses.")
    backoff_base_seconds: float = Field(default=1.0, ge=0.0, description="First backoff delay; doubles per retry.")
    max_retry_after: float = Field(default=60.0, ge=0.0, description="Upper bound on a server-sent Retry-After delay.")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/124.0 Safari/537.36"
        ),
        description="User-Agent string for HTTP requests.",
    )
    accept_language: str = Field(default="en-US,en;q=0.9,hi;q=0.8")


class LLMConfig(BaseModel):
    """Language-model client configuration."""

    api_url: str = Field(default="https://api.anthropic.com/v1/messages")
    api_version: str = Field(default="2023-06-01")
    model: str = Field(default="claude-sonnet-4-5")
    max_web_search_uses: int = Field(default=5, ge=1)
    timeout: float = Field(default=120.0, description="Model calls are slow; allow a generous timeout.")


class ExtractionSettings(BaseModel):
    """Configuration for the extraction cascade."""

    method_order: List[MethodName] = Field(
        default_factory=lambda: list(TRUST_ORDER),
        description="Methods to try, in order. Omit a method to disable it.",
    )
    default_language: str = Field(default="en")
    validation_min_chars: int = Field(
        default_factory=lambda: int(os.getenv("KHOZO_VALIDATION_MIN_CHARS", "100")),
        ge=1,
        description="Minimum length of accepted content.",
    )
    web_search_min_chars: int = Field(default=500, ge=1)
    metadata_min_description_chars: int = Field(default=200, ge=0)
    metadata_min_output_chars: int = Field(default=200, ge=1)
    library_offset_unit: str = Field(default="s", description="Offset unit reported by the caption library.")
    caption_api_url: str = Field(default="https://api.supadata.ai/v1/youtube/transcript")
    words_per_minute: int = Field(default=200, ge=1)

    @field_validator("method_order")
    @classmethod
    def validate_method_order(cls, v: List[MethodName]) -> List[MethodName]:
        """Ensure the order is non-empty, duplicate free and respects trust order."""
        if not v:
            raise ValueError("method_order must contain at least one method")
        if len(set(v)) != len(v):
            raise ValueError("method_order must not repeat a method")
        ranks = [TRUST_ORDER.index(m) for m in v]
        if ranks != sorted(ranks):
            raise ValueError("method_order must follow trust order (most direct source first)")
        return v

    @field_validator("library_offset_unit")
    @classmethod
    def validate_offset_unit(cls, v: str) -> str:
        if v not in ("s", "ms"):
            raise ValueError("library_offset_unit must be 's' or 'ms'")
        return v


class CredentialsConfig(BaseModel):
    """Third-party API keys. Populated from YAML or KHOZO_CREDENTIALS__* env vars."""

    anthropic_api_key: Optional[SecretStr] = None
    caption_api_key: Optional[SecretStr] = None
    youtube_api_key: Optional[SecretStr] = None


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(
        default=None,
        description="Path to log file. If None, logs to console.",
    )
    prometheus_port: int | None = Field(
        default=None,
        description="Port for Prometheus metrics exporter. None to disable.",
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "khozo"
    version: str = "0.1.0"
    http: HttpConfig = Field(default_factory=HttpConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="KHOZO_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "khozo.yaml", current_dir / "khozo.yml"):
        if path.exists():
            return path
    return None


# --- Lazy Configuration Loader ---


class LazyConfig:
    """
    A proxy for the Config object that delays its loading and validation
    until an attribute is first accessed. This prevents configuration errors
    from crashing the application on import.
    """

    _config: ClassVar[Config | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __getattr__(self, name: str) -> Any:
        if self.__class__._config is None:
            with self.__class__._lock:
                if self.__class__._config is None:
                    self.__class__._config = self._load_config_with_fallback()
        return getattr(self.__class__._config, name)

    def _load_config_with_fallback(self) -> Config:
        """Load configuration from file or fall back to defaults."""
        config_path = find_config_file()
        if config_path:
            try:
                log.info("Lazy loading configuration from: %s", config_path)
                return Config.from_yaml(config_path)
            except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
                log.error(
                    "Failed to load or validate configuration from '%s': %s. "
                    "Falling back to default settings. Please check your config file.",
                    config_path,
                    e,
                    exc_info=log.getEffectiveLevel() <= logging.DEBUG,
                )
        else:
            log.info("No config file found. Using default settings for lazy load.")

        try:
            return Config()
        except ValidationError as e:
            log.critical("FATAL: Default configuration is invalid: %s", e, exc_info=True)
            raise RuntimeError(f"Default configuration is invalid, cannot start: {e}") from e


# --- Global Settings Instance ---
settings: "Config" = cast("Config", LazyConfig())
