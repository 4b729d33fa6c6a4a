"""Service settings configuration.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from typing import Annotated

# Third-party (alphabetical)
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Local imports (core first, then alphabetical)
from .constants import (
    CONNECT_TIMEOUT_MS,
    DEFAULT_COLLECTION_NAME,
    DEFAULT_CORS_ORIGINS,
    DEFAULT_DATABASE_NAME,
    DEFAULT_ENVIRONMENT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    HEARTBEAT_INTERVAL_SECONDS,
    MAX_BODY_BYTES,
    MAX_POOL_SIZE,
    MAX_RETRY_DELAY_SECONDS,
    MIN_POOL_SIZE,
    PRODUCTION_ENVIRONMENTS,
    RETRY_BACKOFF_FACTOR,
    RETRY_DELAY_SECONDS,
    SERVER_SELECTION_TIMEOUT_MS,
    SOCKET_TIMEOUT_MS,
)
from .models import SubmissionProfile, get_profile
from .types import MetricField, ProfileName

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("ServiceSettings", "load_settings")

# =============================================================================
# Section 11: Classes
# =============================================================================
class ServiceSettings(BaseSettings):
    """Runtime configuration read from the environment and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_default=True,
    )

    # Store
    mongodb_uri: str | None = None
    database_name: str = DEFAULT_DATABASE_NAME
    collection_name: str = DEFAULT_COLLECTION_NAME

    # Server
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    environment: str = DEFAULT_ENVIRONMENT
    reload: bool = False
    max_body_bytes: int = Field(default=MAX_BODY_BYTES, gt=0)

    # Submissions
    submission_profile: ProfileName = "A"
    metric_field: MetricField | None = None

    # Connection lifecycle
    retry_delay_seconds: float = Field(default=RETRY_DELAY_SECONDS, gt=0)
    max_retry_delay_seconds: float = Field(default=MAX_RETRY_DELAY_SECONDS, gt=0)
    retry_backoff_factor: float = Field(default=RETRY_BACKOFF_FACTOR, ge=1.0)
    heartbeat_interval_seconds: float = Field(default=HEARTBEAT_INTERVAL_SECONDS, gt=0)
    server_selection_timeout_ms: int = Field(default=SERVER_SELECTION_TIMEOUT_MS, gt=0)
    socket_timeout_ms: int = Field(default=SOCKET_TIMEOUT_MS, gt=0)
    connect_timeout_ms: int = Field(default=CONNECT_TIMEOUT_MS, gt=0)
    max_pool_size: int = Field(default=MAX_POOL_SIZE, ge=1)
    min_pool_size: int = Field(default=MIN_POOL_SIZE, ge=0)

    # Access policy
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    cors_origin_regex: str | None = None
    cors_allow_all: bool = False
    admin_token: SecretStr | None = None

    @field_validator("submission_profile", mode="before")
    @classmethod
    def normalize_profile(cls, v: object) -> object:
        """Accept lower-case profile names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v: object) -> object:
        """Accept a comma-separated string of origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("mongodb_uri", "admin_token", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in PRODUCTION_ENVIRONMENTS

    @property
    def profile(self) -> SubmissionProfile:
        """The active submission profile."""
        return get_profile(self.submission_profile, metric_field=self.metric_field)


# =============================================================================
# Section 12: Functions
# =============================================================================
def load_settings(**overrides: object) -> ServiceSettings:
    """Load settings from environment, applying keyword overrides."""
    return ServiceSettings(**overrides)  # type: ignore[arg-type]
