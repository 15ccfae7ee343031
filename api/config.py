"""
Configuration utilities and settings management.

Handles environment variables, path resolution, and application settings.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "core" / "config_generator" / "templates"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_debug: bool = Field(default=True, alias="API_DEBUG")

    # NGINX Paths
    nginx_scan_dir: str = Field(
        default="/etc/nginx/sites-available",
        alias="NGINX_SCAN_DIR",
        description="Directory scanned for existing virtual-host files",
    )
    nginx_sites_available_dir: str = Field(
        default="/etc/nginx/sites-available",
        alias="NGINX_SITES_AVAILABLE_DIR",
        description="Output root for the 'sites-available' save destination",
    )
    nginx_conf_d_dir: str = Field(
        default="/etc/nginx/conf.d",
        alias="NGINX_CONF_D_DIR",
        description="Output root for the 'conf.d' save destination",
    )
    nginx_template_dir: str = Field(
        default=str(DEFAULT_TEMPLATE_DIR),
        alias="NGINX_TEMPLATE_DIR",
        description="Directory holding the .txt virtual-host templates",
    )

    # Registry
    registry_db_path: str = Field(
        default="/var/lib/nginx-registry/registry.db",
        alias="REGISTRY_DB_PATH",
        description="Path to SQLite database for machines and nginx files",
    )

    # Host identity
    host_ip_address: str | None = Field(
        default=None,
        alias="HOST_IP_ADDRESS",
        description="Override for this machine's address (skips interface detection)",
    )

    # CORS
    cors_allowed_origins: str = Field(
        default="",
        alias="CORS_ALLOWED_ORIGINS",
        description="Comma-separated list of allowed CORS origins (empty = wildcard in debug mode only)",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in .env file


# Global settings instance
settings = Settings()


def get_scan_dir_path() -> Path:
    """Get the directory scanned during reconciliation."""
    return Path(settings.nginx_scan_dir)


def get_template_dir_path() -> Path:
    """Get the template root directory."""
    return Path(settings.nginx_template_dir)


def get_output_dir_path(save_destination: str) -> Path:
    """Map a save destination to its configured output root."""
    if save_destination == "conf.d":
        return Path(settings.nginx_conf_d_dir)
    return Path(settings.nginx_sites_available_dir)


def ensure_directories():
    """Ensure required directories exist (for development/testing)."""
    dirs_to_create = [
        Path(settings.registry_db_path).parent,
    ]

    for dir_path in dirs_to_create:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
