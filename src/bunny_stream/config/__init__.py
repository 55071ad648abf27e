"""Configuration management."""

from bunny_stream.config.secrets import (
    Credentials,
    SecretsManagerError,
    clear_credentials_cache,
    get_credentials,
    get_secret,
)
from bunny_stream.config.settings import BunnySettings, get_settings

__all__ = [
    "BunnySettings",
    "Credentials",
    "SecretsManagerError",
    "clear_credentials_cache",
    "get_credentials",
    "get_secret",
    "get_settings",
]
