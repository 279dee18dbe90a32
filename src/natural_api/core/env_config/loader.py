"""
Configuration loader from environment variables and .env files.
"""

from typing import Any, Optional

from pydantic import ValidationError

from ..auth import StaticTokenProvider
from ..config import ApiDefaults, NaturalApiConfig, SecurityConfig, TimeoutConfig
from ..exceptions import ConfigurationError
from ..logging.config import LoggingConfig, LogFormat, LogLevel
from .settings import NaturalApiSettings


def load_settings(env_file: Optional[str] = None, **overrides: Any) -> NaturalApiSettings:
    """
    Read NaturalApiSettings.

    Priority (highest to lowest):
    1. **overrides - explicit parameters (field names of NaturalApiSettings)
    2. Environment variables (NATURAL_API_*)
    3. .env file (``env_file`` or ./.env)
    4. Defaults

    Raises:
        ConfigurationError: unknown override or invalid value
    """
    unknown = sorted(set(overrides) - set(NaturalApiSettings.model_fields))
    if unknown:
        raise ConfigurationError(f"Unknown configuration option(s): {', '.join(unknown)}")

    kwargs = dict(overrides)
    if env_file is not None:
        kwargs["_env_file"] = env_file

    try:
        return NaturalApiSettings(**kwargs)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> NaturalApiConfig:
    """
    Load NaturalApiConfig (executor configuration) from the environment.

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(env_file=".env.staging", timeout_read=60)
        >>> api = Api(config=config)
    """
    settings = load_settings(env_file, **overrides)

    logging_config = None
    if settings.log_enabled:
        logging_config = LoggingConfig(
            level=LogLevel(settings.log_level),
            format=LogFormat(settings.log_format),
            enable_console=settings.log_enable_console,
            enable_file=settings.log_enable_file,
            file_path=settings.log_file_path,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count,
            enable_correlation_id=settings.log_enable_correlation_id,
            log_bodies=settings.log_bodies,
        )

    return NaturalApiConfig(
        base_url=settings.base_url or None,
        timeout=TimeoutConfig(connect=settings.timeout_connect, read=settings.timeout_read),
        security=SecurityConfig(
            verify_ssl=settings.security_verify_ssl,
            allow_redirects=settings.security_allow_redirects,
            max_body_snippet=settings.security_max_body_snippet,
        ),
        logging=logging_config,
    )


def load_defaults_from_env(env_file: Optional[str] = None, **overrides: Any) -> ApiDefaults:
    """
    Load per-request ApiDefaults from the environment.

    ``NATURAL_API_AUTH_TOKEN`` becomes a StaticTokenProvider.

    Example:
        >>> api = Api(defaults=load_defaults_from_env(), config=load_from_env())
    """
    settings = load_settings(env_file, **overrides)

    return ApiDefaults(
        base_url=settings.base_url or None,
        headers=settings.default_headers,
        timeout=settings.request_timeout,
        auth_provider=StaticTokenProvider(settings.auth_token) if settings.auth_token else None,
    )
