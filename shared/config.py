"""
Shared configuration management for the OneMap Token Proxy.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ONEMAP_AUTH_URL = "https://www.onemap.gov.sg/api/auth/post/getToken"

# OneMap tokens live 259200s (3 days); cached copies expire after 2.5 days.
ONEMAP_TOKEN_LIFETIME_SECONDS = 259200
DEFAULT_CACHE_TTL_SECONDS = 216000


@dataclass(frozen=True)
class OneMapCredentials:
    """Email/password pair used to log in to OneMap."""

    email: Optional[str]
    password: Optional[str]

    @property
    def is_complete(self) -> bool:
        return bool(self.email) and bool(self.password)

    def __repr__(self) -> str:
        return f"OneMapCredentials(email={self.email!r}, password={'***' if self.password else None})"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_PROXY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Token cache; unset disables caching, "memory://" keeps it in-process
    cache_url: Optional[str] = None
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS

    # Upstream
    onemap_auth_url: str = ONEMAP_AUTH_URL
    upstream_timeout: float = 10.0

    # Credentials
    onemap_email: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ONEMAP_EMAIL", "TOKEN_PROXY_ONEMAP_EMAIL"),
    )
    onemap_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ONEMAP_PASSWORD", "TOKEN_PROXY_ONEMAP_PASSWORD"),
        repr=False,
    )
    secrets_file: Optional[str] = None
    master_key: Optional[str] = Field(default=None, repr=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = 8787
    host: str = "0.0.0.0"


def get_config(service_name: str, port: Optional[int] = None, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    if port is not None:
        overrides["port"] = port
    return ServiceConfig(service_name=service_name, **overrides)
