"""
Environment configuration for NaturalApi.

Load configuration from .env files and environment variables.

Example:
    >>> from natural_api.core.env_config import load_from_env, load_defaults_from_env
    >>>
    >>> api = Api(defaults=load_defaults_from_env(), config=load_from_env())
"""

from .loader import load_defaults_from_env, load_from_env, load_settings
from .settings import NaturalApiSettings

__all__ = [
    "load_from_env",
    "load_defaults_from_env",
    "load_settings",
    "NaturalApiSettings",
]
