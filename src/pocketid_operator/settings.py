"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.

Pocket ID connection settings live in a separate class that is re-read on
every reconciliation attempt, so a rotated API token takes effect without
restarting the operator.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_POCKETID_API_URL


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="POCKETID_OPERATOR_NAMESPACES",
        description="Comma-separated list of namespaces to watch (empty = all namespaces)",
    )

    # Metrics and observability
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # CRD management
    register_crd: bool = Field(
        default=True,
        validation_alias="REGISTER_CRD",
        description="Apply the PocketIDClient CRD on operator startup",
    )

    # Reconciliation behavior
    retry_resync_interval_seconds: float = Field(
        default=30.0,
        validation_alias="RETRY_RESYNC_INTERVAL_SECONDS",
        description="Interval for re-driving failed resources whose backoff elapsed",
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.namespaces:
            return [ns.strip() for ns in self.namespaces.split(",") if ns.strip()]
        return None


class PocketIDSettings(BaseSettings):
    """Connection settings for the Pocket ID API."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(
        default=DEFAULT_POCKETID_API_URL,
        validation_alias="POCKETID_API_URL",
        description="Base URL of the Pocket ID server",
    )
    api_token: str = Field(
        default="",
        validation_alias="POCKETID_API_TOKEN",
        description="API key sent in the X-API-KEY header (required)",
    )
    timeout: float = Field(
        default=30.0,
        validation_alias="POCKETID_API_TIMEOUT",
        description="Request timeout in seconds",
    )
    verify_ssl: bool = Field(
        default=True,
        validation_alias="POCKETID_VERIFY_SSL",
        description="Verify TLS certificates of the Pocket ID server",
    )


def get_pocketid_settings() -> PocketIDSettings:
    """Load Pocket ID settings from the current environment."""
    return PocketIDSettings()


# Global settings instance - initialized once at module import
settings = Settings()
