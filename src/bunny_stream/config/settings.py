"""Client configuration using pydantic-settings.

Loads configuration from environment variables (prefix ``BUNNY_``) with
sensible defaults. A ``.env`` file at the project root is read by
``bunny_stream.config.secrets`` before settings are first built.

Example:
    export BUNNY_LIBRARY_ID=123456
    export BUNNY_MAX_ATTEMPTS=5
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bunny_stream.config.secrets import Credentials


class BunnySettings(BaseSettings):
    """Configuration for the Bunny.net client.

    Credentials (``access_key``/``library_id``) may be left empty here and
    supplied by AWS Secrets Manager instead; see
    :func:`bunny_stream.config.secrets.get_credentials`. When ``access_key``
    is set, :meth:`credentials` takes precedence over the secret.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUNNY_",
        case_sensitive=False,
    )

    # Credentials
    access_key: str = Field(default="", repr=False)
    library_id: str = ""
    secret_id: str | None = None

    # Upstream
    auth_scheme: Literal["access_key", "bearer"] = "access_key"
    video_base_url: str = "https://video.bunnycdn.com/"
    api_base_url: str = "https://api.bunny.net/"

    # Retry / transport
    max_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, gt=0)
    http_timeout: float = 30.0
    upload_timeout: float = 20.0

    # Collections
    collection_prefix: str = "wpbs"
    collection_lock_ttl: float = 10.0

    # Persistence
    database_url: str | None = Field(default=None, repr=False)

    log_level: str = "INFO"

    def credentials(self) -> Credentials | None:
        """Credentials configured on the settings, None without an access key."""
        if not self.access_key:
            return None
        return Credentials(access_key=self.access_key, library_id=self.library_id)


@lru_cache
def get_settings() -> BunnySettings:
    """Get cached settings instance."""
    return BunnySettings()
