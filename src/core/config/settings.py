# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the school
platform's tenant administration layer. Settings are loaded from environment
variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADMIN_TOKEN = "change-this-in-production"


class CentralDatabaseSettings(BaseSettings):
    """Shared database configuration.

    The shared database stores:
    - The tenant registry (tenants)
    - Membership mappings (tenant_users)
    - Platform accounts (accounts)
    - One schema per provisioned tenant

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="CENTRAL_DB_",
        extra="ignore",
    )

    user: str = "iep"
    password: SecretStr = SecretStr("iep_central_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "iep_platform"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class TenancySettings(BaseSettings):
    """Tenant provisioning configuration.

    Attributes:
        membership_schema: Schema holding the shared tenant_users table.
            Access policies reference it fully qualified.
        policy_name: Name of the row-level policy installed on every
            tenant relation.
        identity_expression: SQL expression evaluating to the id of the
            requesting identity. Hosted auth deployments typically use
            ``auth.uid()``.
        default_list_limit: Page size used when a listing gives none.
        max_list_limit: Upper bound for a listing page size.
        temporary_password_length: Length of generated admin credentials.
        password_hash_rounds: bcrypt cost factor for account passwords.
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        extra="ignore",
    )

    membership_schema: str = "public"
    policy_name: str = "tenant_isolation_policy"
    identity_expression: str = (
        "NULLIF(current_setting('app.current_user_id', true), '')::uuid"
    )
    default_list_limit: int = Field(default=10, ge=1)
    max_list_limit: int = Field(default=100, ge=1)
    temporary_password_length: int = Field(default=12, ge=8)
    password_hash_rounds: int = Field(default=12, ge=4, le=31)


class APISettings(BaseSettings):
    """Management API server configuration.

    Attributes:
        host: API server host.
        port: API server port.
        admin_token: Bearer token required by the tenant management endpoints.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    admin_token: SecretStr = SecretStr(DEFAULT_ADMIN_TOKEN)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        central_db: Shared database settings.
        tenancy: Tenant provisioning settings.
        api: Management API settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Subsettings - loaded with their own env prefixes
    central_db: CentralDatabaseSettings = Field(default_factory=CentralDatabaseSettings)
    tenancy: TenancySettings = Field(default_factory=TenancySettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.api.admin_token.get_secret_value() == DEFAULT_ADMIN_TOKEN:
                raise ValueError(
                    "API admin token must be changed from default in production. "
                    "Set API_ADMIN_TOKEN environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
