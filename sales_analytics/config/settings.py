"""
Sales Dashboard Analytics
Centralized Configuration Management

Pydantic settings with environment variable and .env support. Every
threshold used by the aggregation layer lives here so it can be tuned
per deployment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamSettings(BaseSettings):
    """Upstream order feed (Apps Script webapp) configuration"""

    model_config = SettingsConfigDict(env_prefix="UPSTREAM_", populate_by_name=True)

    url: Optional[str] = Field(default=None, alias="APPS_SCRIPT_URL", description="Order feed URL")
    timeout_seconds: float = Field(default=30.0, description="HTTP timeout in seconds")


class DashboardSettings(BaseSettings):
    """Aggregation and response caching configuration"""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", populate_by_name=True)

    revalidate_seconds: int = Field(
        default=300,
        alias="REVALIDATE_SECONDS",
        description="Cache-Control s-maxage for the dashboard response",
    )
    refresh_interval_seconds: int = Field(default=300, description="Background refresh interval")
    background_refresh: bool = Field(default=False, description="Run the periodic refresh task")
    timezone: str = Field(default="America/Montevideo", description="Reporting timezone")
    locale: str = Field(default="en", description="Display label locale: en or es")
    top_products_limit: int = Field(default=10, description="Top products in the all-time ranking")
    filtered_top_limit: int = Field(default=8, description="Top products when filtered by month")
    minor_category_share: float = Field(
        default=0.04,
        description="Categories below this share of orders fold into Other",
    )

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        """Validate display locale"""
        allowed = ["en", "es"]
        if v.lower() not in allowed:
            raise ValueError(f"Locale must be one of: {allowed}")
        return v.lower()


class StockSettings(BaseSettings):
    """Stock coverage thresholds"""

    model_config = SettingsConfigDict(env_prefix="STOCK_")

    velocity_window_days: int = Field(default=90, description="Trailing window for sales velocity")
    alert_days: int = Field(default=15, description="Coverage below this needs a reorder")
    watch_days: int = Field(default=30, description="Coverage below this is on watch")
    infinite_coverage_days: int = Field(default=999, description="Coverage for stock with no sales")


class SecuritySettings(BaseSettings):
    """CORS configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="sales-dashboard-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    stock: StockSettings = Field(default_factory=StockSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
