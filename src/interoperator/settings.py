"""Centralized interoperator settings using pydantic-settings.

This module provides a single source of truth for all engine configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_CONTROL_NAMESPACE,
    DEFAULT_GRACEFUL_DELETE_API_VERSIONS,
    DEFAULT_HELM_BINARY,
    DEFAULT_HELM_TIMEOUT,
    DEFAULT_IGNORE_FILE_SUFFIXES,
)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Interoperator configuration loaded from environment variables.

    All settings have sensible defaults. Override via environment variables
    as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Catalog location
    operator_namespace: str = Field(
        default=DEFAULT_CONTROL_NAMESPACE,
        description="Control namespace holding SFService and SFPlan objects",
        validation_alias="POD_NAMESPACE",
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

    # Rendering
    helm_binary: str = Field(
        default=DEFAULT_HELM_BINARY,
        validation_alias="HELM_BINARY",
        description="Path or name of the helm executable used by the chart renderer",
    )
    helm_timeout_seconds: int = Field(
        default=DEFAULT_HELM_TIMEOUT,
        validation_alias="HELM_TIMEOUT_SECONDS",
        description="Timeout in seconds for a single chart render",
    )
    render_ignore_suffixes: str = Field(
        default=",".join(DEFAULT_IGNORE_FILE_SUFFIXES),
        validation_alias="RENDER_IGNORE_SUFFIXES",
        description="Comma-separated file suffixes dropped from rendered output",
    )

    # Deletion
    graceful_delete_api_versions: str = Field(
        default=",".join(DEFAULT_GRACEFUL_DELETE_API_VERSIONS),
        validation_alias="GRACEFUL_DELETE_API_VERSIONS",
        description=(
            "Comma-separated apiVersions whose resources are torn down by "
            "setting status.state=delete instead of a direct delete"
        ),
    )

    @property
    def ignore_file_suffixes(self) -> list[str]:
        """Parse the rendered file ignore-list."""
        return _split_csv(self.render_ignore_suffixes)

    @property
    def graceful_delete_versions(self) -> list[str]:
        """Parse the graceful teardown apiVersion registry.

        Returns:
            List of apiVersion strings
        """
        return _split_csv(self.graceful_delete_api_versions)


# Global settings instance - initialized once at module import
settings = Settings()
