"""
Pydantic settings for environment configuration.
"""

from typing import Dict, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NaturalApiSettings(BaseSettings):
    """
    NaturalApi configuration from environment variables.

    Reads from:
    1. Init kwargs (overrides)
    2. Environment variables (NATURAL_API_*)
    3. .env file
    4. Defaults

    Example .env file:
        NATURAL_API_BASE_URL=https://api.example.com
        NATURAL_API_TIMEOUT_CONNECT=5
        NATURAL_API_REQUEST_TIMEOUT=15
        NATURAL_API_DEFAULT_HEADERS={"Accept": "application/json"}
        NATURAL_API_AUTH_TOKEN=secret-token
        NATURAL_API_LOG_ENABLED=true
        NATURAL_API_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix='NATURAL_API_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="", description="Base URL for relative endpoints")

    # Timeouts
    timeout_connect: float = Field(default=5.0, gt=0)
    timeout_read: float = Field(default=30.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request default timeout")

    # Defaults for every request
    default_headers: Dict[str, str] = Field(default_factory=dict)
    auth_token: Optional[str] = Field(default=None, description="Static bearer token")

    # Security
    security_verify_ssl: bool = Field(default=True)
    security_allow_redirects: bool = Field(default=True)
    security_max_body_snippet: int = Field(default=500, gt=0)

    # Logging (off unless enabled)
    log_enabled: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_enable_console: bool = Field(default=True)
    log_enable_file: bool = Field(default=False)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = Field(default=True)
    log_bodies: bool = Field(default=False)

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')

    @model_validator(mode='after')
    def validate_file_path(self) -> "NaturalApiSettings":
        """log_file_path is required when log_enable_file=True."""
        if self.log_enable_file and not self.log_file_path:
            raise ValueError("log_file_path is required when log_enable_file=True")
        return self
