"""
Shared configuration management for the BaaS client.
"""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BAAS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class ClientConfig(BaseConfig):
    """Settings for the transport, cipher and cache layers."""

    # Backend
    api_base_url: str = Field(default="http://localhost:8080")
    accept_header: str = Field(default="application/json;charset=utf-8")
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    session_token: Optional[str] = Field(default=None)

    # Cipher, shared with the backend. Key must be 32 bytes, IV 16 bytes.
    cipher_key: str = Field(default="0123456789abcdef0123456789abcdef")
    cipher_iv: str = Field(default="0123456789abcdef")

    # Cache
    cache_grace_seconds: float = Field(default=60.0, ge=0)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("cipher_key")
    @classmethod
    def _check_key_length(cls, value: str) -> str:
        if len(value.encode("utf-8")) != 32:
            raise ValueError("cipher_key must encode to 32 bytes")
        return value

    @field_validator("cipher_iv")
    @classmethod
    def _check_iv_length(cls, value: str) -> str:
        if len(value.encode("utf-8")) != 16:
            raise ValueError("cipher_iv must encode to 16 bytes")
        return value


def get_config(**overrides: Any) -> ClientConfig:
    """Get client configuration; explicit overrides win over the environment."""
    return ClientConfig(**overrides)
