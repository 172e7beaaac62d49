"""
nodedns.tier0_core.config
──────────────────────────
Typed node-source configuration with env layering. Reads from .env →
environment variables. All fields are typed via Pydantic and frozen once
built; a bad value raises ConfigurationError at startup, not mid-pass.

Minimal stack: pydantic-settings + python-dotenv
Env prefix:    NODEDNS_ (e.g. NODEDNS_FQDN_TEMPLATE, NODEDNS_LABEL_FILTER)
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nodedns.tier0_core.errors import ConfigurationError

DEFAULT_CONTROLLER_VALUE = "dns-controller"


class SourceConfig(BaseSettings):
    """
    Operator policy for the node source. Immutable after construction.
    """

    model_config = SettingsConfigDict(
        env_prefix="NODEDNS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ── Ownership ─────────────────────────────────────────────────────────────
    controller_value: str = Field(default=DEFAULT_CONTROLLER_VALUE)

    # ── Selection ─────────────────────────────────────────────────────────────
    annotation_filter: str = Field(default="")
    label_filter: str = Field(default="")
    exclude_unschedulable: bool = Field(default=True)

    # ── Naming ────────────────────────────────────────────────────────────────
    fqdn_template: str = Field(default="")

    # ── Addressing ────────────────────────────────────────────────────────────
    expose_internal_ipv6: bool = Field(default=True)

    # ── Inventory cache ───────────────────────────────────────────────────────
    cache_sync_timeout: float = Field(default=60.0)

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("cache_sync_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"cache_sync_timeout must be positive, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "console"}
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v.lower()

    @field_validator("annotation_filter", "label_filter", "fqdn_template")
    @classmethod
    def strip_expression(cls, v: str) -> str:
        return v.strip()


def load_config(**overrides: Any) -> SourceConfig:
    """
    Build a SourceConfig from env plus explicit overrides.
    Raises ConfigurationError (not Pydantic's) on bad values.
    """
    try:
        return SourceConfig(**overrides)
    except PydanticValidationError as exc:
        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ConfigurationError(
            user_message="Invalid node source configuration.",
            detail=str(exc),
            fields=fields,
        ) from exc


@lru_cache(maxsize=1)
def get_config() -> SourceConfig:
    """
    Return the singleton config built from the environment. Cached after
    first call. Call _reset_config() in tests to pick up new env vars.
    """
    return load_config()


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()
