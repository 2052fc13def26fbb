"""Environment-driven settings for the recharge service.

Loaded once at startup from the process environment and an optional `.env`
file in the working directory (see `.env.example`). Real environment
variables win over `.env` entries.
"""

import logging
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_BASE_URL = "https://imb.org.in/api"


class ConfigurationError(Exception):
    """Raised when the environment does not describe a usable configuration."""
    pass


class TransportPolicy(BaseModel):
    """How the gateway client talks to the outside world."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = 30.0
    max_redirects: int = 5
    verify_tls: bool = True
    ca_bundle: Optional[str] = None
    allow_insecure_http: bool = False
    max_connections: int = 50
    max_keepalive_connections: int = 20


class Settings(BaseSettings):
    """Process-wide configuration, built once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    user_token: str = Field(min_length=1)
    gateway_base_url: str = DEFAULT_GATEWAY_BASE_URL
    port: int = 3000
    host: str = "0.0.0.0"
    public_base_url: Optional[str] = None
    static_dir: str = "dist"
    cors_origins: Annotated[tuple[str, ...], NoDecode] = ("*",)
    order_remark: str = "Recharge Payment"
    enable_profiling: bool = False

    gateway_verify_tls: bool = True
    gateway_ca_bundle: Optional[str] = None
    gateway_allow_insecure_http: bool = False

    @field_validator("gateway_base_url", "public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.rstrip("/") or None

    @field_validator("gateway_ca_bundle")
    @classmethod
    def blank_as_unset(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            v = [origin.strip() for origin in v.split(",")]
        origins = tuple(origin for origin in v if origin)
        return origins or ("*",)

    @property
    def transport(self) -> TransportPolicy:
        return TransportPolicy(
            verify_tls=self.gateway_verify_tls,
            ca_bundle=self.gateway_ca_bundle,
            allow_insecure_http=self.gateway_allow_insecure_http,
        )

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "Settings":
        """Read settings from the environment, falling back to `env_file`."""
        try:
            return cls(_env_file=env_file)
        except ValidationError as e:
            fields = ", ".join(
                str(error["loc"][0]).upper() for error in e.errors() if error["loc"]
            )
            logger.error(f"Invalid configuration for: {fields}")
            raise ConfigurationError(f"Invalid or missing settings: {fields}") from e
