"""HTTP client for the Jellyfin API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from reclaimr.adapters.http_resilience import (
    ClientFactory,
    ResilienceConfig,
    ServiceAPIError,
    check_response,
    default_client_factory,
    join_url,
    resilience_for,
)
from reclaimr.domain.model import MediaType

from .schema import ItemsResponse
from .translator import parse_watch_record

if TYPE_CHECKING:
    from reclaimr.adapters.http_resilience import ResilientClient
    from reclaimr.config.settings import IntegrationConfig
    from reclaimr.domain.ports import WatchHistorySource, WatchRecord

log = getLogger(__name__)

ITEM_TYPES: dict[MediaType, str] = {
    MediaType.MOVIE: "Movie",
    MediaType.TV_SHOW: "Series",
}
ITEM_FIELDS = "Path,DateCreated,ProviderIds"
_REFRESH_ACCEPTED = frozenset({200, 204})


class JellyfinAPIError(ServiceAPIError):
    """Raised when Jellyfin returns an unexpected response."""


@dataclass(slots=True)
class JellyfinClient:
    config: IntegrationConfig
    resilience: ResilienceConfig | None = None
    client_factory: ClientFactory = default_client_factory

    def list_watch_records(self, media_type: MediaType) -> list[WatchRecord]:
        response = asyncio.run(self._fetch_items(ITEM_TYPES[media_type]))
        log.debug(
            f"Fetched {len(response.items)} {ITEM_TYPES[media_type]} items from Jellyfin "
            f"(total {response.total_record_count})"
        )
        return [parse_watch_record(item) for item in response.items]

    def refresh_library(self) -> None:
        """Ask Jellyfin to rescan its libraries."""

        asyncio.run(self._refresh())
        log.info("Triggered library refresh in Jellyfin")

    def _open(self) -> ResilientClient:
        if self.resilience is None:
            self.resilience = resilience_for("jellyfin", self.config)
        return self.client_factory(self.resilience)

    async def _fetch_items(self, item_type: str) -> ItemsResponse:
        params = {
            "IncludeItemTypes": item_type,
            "Recursive": "true",
            "Fields": ITEM_FIELDS,
            "api_key": self.config.api_key,
        }
        async with self._open() as client:
            response = await client.get(join_url(self.config.url, "Items"), params=params)
            check_response(response, JellyfinAPIError)
            payload = response.json()
        try:
            return ItemsResponse.model_validate(payload)
        except ValidationError as exc:
            raise JellyfinAPIError(f"Unexpected Jellyfin items payload: {exc}") from exc

    async def _refresh(self) -> None:
        async with self._open() as client:
            response = await client.post(
                join_url(self.config.url, "Library/Refresh"),
                params={"api_key": self.config.api_key},
            )
            check_response(response, JellyfinAPIError, accepted=_REFRESH_ACCEPTED)


if TYPE_CHECKING:
    _source_check: WatchHistorySource = JellyfinClient(config=IntegrationConfig())
