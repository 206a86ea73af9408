"""
Shared configuration management for the uniauth token service.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings.

    Every field is read from the environment with the ``UNIAUTH_`` prefix,
    e.g. ``UNIAUTH_JWT_PUBLIC_KEY``, or from a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNIAUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    json_logs: bool = Field(default=True)

    # Key material; inline PEM wins over the file settings
    jwt_private_key: Optional[str] = Field(default=None)
    jwt_public_key: Optional[str] = Field(default=None)
    jwt_private_key_file: Optional[Path] = Field(default=None)
    jwt_public_key_file: Optional[Path] = Field(default=None)

    # Claims and validation
    jwt_issuer: str = Field(default="uniauth")
    jwt_audience: Optional[str] = Field(default=None)
    jwt_ttl_seconds: int = Field(default=3600, gt=0)
    jwt_leeway_seconds: int = Field(default=0, ge=0)

    # Observability
    metrics_enabled: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    def key_sources(self) -> Tuple[Union[str, Path, None], Union[str, Path, None]]:
        """Return the ``(private, public)`` key sources, inline PEM before files."""
        private_key = self.jwt_private_key or self.jwt_private_key_file
        public_key = self.jwt_public_key or self.jwt_public_key_file
        return private_key, public_key


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    Raises:
        ConfigurationError: a setting failed validation.
    """
    try:
        return ServiceConfig(service_name=service_name, **overrides)
    except ValidationError as e:
        errors = [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        raise ConfigurationError("Invalid settings", details={"errors": errors}) from e
