"""Storage zone resource handler.

Media offloading stores files in a Bunny.net storage zone. Zone names are
global across all Bunny.net accounts, so creation picks a random name and
tries again when upstream says it is taken.

Example usage:
    storage = StorageHandler(client)
    zone = (await storage.create_storage_zone(replication_regions=["NY"])).unwrap()
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bunny_stream.api.errors import (
    ApiResult,
    ErrorKind,
    HTTPStatusError,
    RetriesExhaustedError,
)
from bunny_stream.api.request import ApiBase

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bunny_stream.api.client import BunnyApiClient
    from bunny_stream.api.errors import ApiError

logger = logging.getLogger(__name__)

STORAGE_REGION_MAIN = "DE"
STORAGE_REGIONS: dict[str, str] = {
    "DE": "Falkenstein",
    "UK": "London",
    "SE": "Stockholm",
    "NY": "New York",
    "LA": "Los Angeles",
    "SG": "Singapore",
    "SYD": "Sydney",
    "BR": "Sao Paulo",
    "JH": "Johannesburg",
}

NAME_TAKEN_MESSAGE = "The storage zone name is already taken."
MAX_NAME_ATTEMPTS = 5

_NAME_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True, slots=True)
class StorageZone:
    """A storage zone as returned by the account API."""

    id: int
    name: str
    password: str = field(repr=False)
    region: str = STORAGE_REGION_MAIN
    replication_regions: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StorageZone:
        return cls(
            id=int(data.get("Id") or 0),
            name=str(data.get("Name") or ""),
            password=str(data.get("Password") or ""),
            region=str(data.get("Region") or STORAGE_REGION_MAIN),
            replication_regions=tuple(data.get("ReplicationRegions") or ()),
        )


def generate_zone_name(prefix: str = "wp-offloader") -> str:
    suffix = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(16))
    return f"{prefix}-{suffix}"


def _is_name_taken(error: ApiError | None) -> bool:
    if isinstance(error, RetriesExhaustedError):
        error = error.last_error
    return isinstance(error, HTTPStatusError) and NAME_TAKEN_MESSAGE in error.body


class StorageHandler:
    """Storage zone operations on the account API."""

    def __init__(self, client: BunnyApiClient) -> None:
        self.client = client

    def validate_replication_regions(
        self,
        replication_regions: Sequence[str],
        main_region: str = STORAGE_REGION_MAIN,
    ) -> ApiResult[tuple[str, ...]]:
        for region in replication_regions:
            if region == main_region:
                return ApiResult.fail(
                    ErrorKind.INVALID_REPLICATION_REGION,
                    "Do not repeat the main region in the replication regions.",
                )
            if not region or region not in STORAGE_REGIONS:
                return ApiResult.fail(
                    ErrorKind.INVALID_REPLICATION_REGION,
                    f"Invalid replication region: {region}",
                )
        return ApiResult.ok(tuple(replication_regions))

    async def create_storage_zone(
        self,
        *,
        name_prefix: str = "wp-offloader",
        region: str = STORAGE_REGION_MAIN,
        replication_regions: Sequence[str] = (),
    ) -> ApiResult[StorageZone]:
        """Create an SSD storage zone under a fresh random name.

        Each name gets a single attempt; a "name taken" answer moves on to
        the next name, any other failure ends the operation.
        """
        regions = self.validate_replication_regions(replication_regions, region)
        if not regions.is_successful:
            return ApiResult.err(regions.error)  # type: ignore[arg-type]

        for _ in range(MAX_NAME_ATTEMPTS):
            name = generate_zone_name(name_prefix)
            data = {
                "Name": name,
                "Region": region,
                "ReplicationRegions": list(regions.value or ()),
                "ZoneTier": 1,
            }
            response = await self.client.send(
                "storagezone",
                "POST",
                data,
                base=ApiBase.ACCOUNT,
                max_attempts=1,
            )
            if response.is_successful:
                zone = StorageZone.from_api(response.value or {})
                logger.info("Created storage zone %s (id=%d)", zone.name, zone.id)
                return ApiResult.ok(zone)
            if _is_name_taken(response.error):
                logger.info("Storage zone name %s is taken, trying another", name)
                continue
            logger.warning("bunnycdn: offloader: %s", response.error)
            return ApiResult.err(response.error)  # type: ignore[arg-type]

        return ApiResult.fail(
            ErrorKind.STORAGE_ZONE_CREATION_FAILED,
            "Could not create storage zone.",
        )
