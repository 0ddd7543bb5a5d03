"""
Configuration management using environment variables.
Handles server, MongoDB and logging settings with validation and defaults.
"""

from typing import List, Optional
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LibraryConfig(BaseSettings):
    """
    Configuration class for the library API.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "library"
    books_collection: str = "books"
    borrows_collection: str = "borrows"
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 45000

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    api_prefix: str = ""
    api_title: str = "Library Management API"
    api_version: str = "1.0.0"

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Development/Testing
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        """Ensure port is a usable TCP port."""
        if v < 1 or v > 65535:
            raise ValueError('port must be between 1 and 65535')
        return v

    @field_validator('server_selection_timeout_ms', 'socket_timeout_ms')
    @classmethod
    def validate_timeouts(cls, v):
        """Ensure driver timeouts are positive."""
        if v <= 0:
            raise ValueError('timeouts must be positive milliseconds')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @field_validator('api_prefix')
    @classmethod
    def normalize_api_prefix(cls, v):
        """Strip trailing slashes and force a leading one."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"


# Global configuration instance
config = LibraryConfig()
