"""Credential retrieval for the Bunny.net API.

Supports two sources:
1. Direct environment variables (BUNNY_ACCESS_KEY / BUNNY_LIBRARY_ID),
   optionally loaded from a .env file
2. AWS Secrets Manager (production), using BUNNY_SECRET_ID

Usage:
    from bunny_stream.config.secrets import get_credentials

    creds = get_credentials()
    client = BunnyApiClient(creds)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import ClientError, NoCredentialsError
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file from project root
_env_path = Path(__file__).resolve().parents[3] / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
    logger.debug("Loaded environment from %s", _env_path)


@dataclass(frozen=True)
class Credentials:
    """Bunny.net credentials. The access key is kept out of ``repr``."""

    access_key: str = field(repr=False)
    library_id: str

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key) and bool(self.library_id)


class SecretsManagerError(Exception):
    """Raised when credentials cannot be retrieved."""

    pass


def _get_secrets_client() -> Any:
    """Create boto3 Secrets Manager client."""
    region = os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    return boto3.client("secretsmanager", region_name=region)


def _get_credentials_from_env() -> Credentials | None:
    """Read BUNNY_ACCESS_KEY and BUNNY_LIBRARY_ID, None if the key is unset."""
    access_key = os.getenv("BUNNY_ACCESS_KEY")
    if not access_key:
        return None
    logger.info("Using Bunny.net credentials from environment variables")
    return Credentials(
        access_key=access_key,
        library_id=os.getenv("BUNNY_LIBRARY_ID", ""),
    )


def _get_credentials_from_aws(secret_id: str) -> Credentials:
    """Retrieve credentials from AWS Secrets Manager."""
    secret_data = get_secret(secret_id)
    # Accept both BUNNY_* and plain key names
    access_key = secret_data.get("BUNNY_ACCESS_KEY", secret_data.get("access_key"))
    library_id = secret_data.get("BUNNY_LIBRARY_ID", secret_data.get("library_id", ""))
    if not access_key:
        raise SecretsManagerError(f"Secret '{secret_id}' has no access key")
    return Credentials(access_key=str(access_key), library_id=str(library_id))


@lru_cache(maxsize=1)
def get_credentials(secret_id: str | None = None) -> Credentials:
    """Retrieve Bunny.net credentials.

    Tries sources in order:
    1. Environment variables (BUNNY_ACCESS_KEY, BUNNY_LIBRARY_ID)
    2. AWS Secrets Manager (``secret_id`` or BUNNY_SECRET_ID)

    Raises:
        SecretsManagerError: If no source yields credentials.
    """
    env_creds = _get_credentials_from_env()
    if env_creds is not None:
        return env_creds

    if secret_id is None:
        secret_id = os.getenv("BUNNY_SECRET_ID")
    if not secret_id:
        raise SecretsManagerError(
            "No Bunny.net credentials found. Set BUNNY_ACCESS_KEY and "
            "BUNNY_LIBRARY_ID, or BUNNY_SECRET_ID for AWS Secrets Manager."
        )

    logger.info("Fetching Bunny.net credentials from AWS Secrets Manager: %s", secret_id)
    return _get_credentials_from_aws(secret_id)


def clear_credentials_cache() -> None:
    """Clear the cached credentials."""
    get_credentials.cache_clear()
    get_secret.cache_clear()


@lru_cache(maxsize=8)
def get_secret(secret_id: str) -> dict[str, Any]:
    """Retrieve any secret from AWS Secrets Manager as a dictionary.

    Raises:
        SecretsManagerError: If secret cannot be retrieved or parsed.
    """
    try:
        client = _get_secrets_client()
        response = client.get_secret_value(SecretId=secret_id)
        result: dict[str, Any] = json.loads(response["SecretString"])
        return result
    except NoCredentialsError as e:
        raise SecretsManagerError(
            "AWS credentials not found. Set AWS_ACCESS_KEY_ID and "
            "AWS_SECRET_ACCESS_KEY, or use BUNNY_ACCESS_KEY for local dev."
        ) from e
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        raise SecretsManagerError(
            f"Failed to retrieve secret '{secret_id}': {error_code}"
        ) from e
    except json.JSONDecodeError as e:
        raise SecretsManagerError(f"Secret '{secret_id}' contains invalid JSON") from e
