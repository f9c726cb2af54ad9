"""HTTP client for the Jellystat API."""

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

from .schema import HistoryPage
from .translator import parse_history_item

if TYPE_CHECKING:
    from reclaimr.adapters.http_resilience import ResilientClient
    from reclaimr.config.settings import IntegrationConfig
    from reclaimr.domain.ports import PlayHistoryEntry, PlayHistorySource

log = getLogger(__name__)

API_TOKEN_HEADER = "x-api-token"
DEFAULT_PAGE_SIZE = 100


class JellystatAPIError(ServiceAPIError):
    """Raised when Jellystat returns an unexpected response."""


@dataclass(slots=True)
class JellystatClient:
    config: IntegrationConfig
    resilience: ResilienceConfig | None = None
    client_factory: ClientFactory = default_client_factory
    page_size: int = DEFAULT_PAGE_SIZE

    def list_play_history(self) -> list[PlayHistoryEntry]:
        """Walk every history page and return one entry per recorded play."""

        return asyncio.run(self._fetch_history())

    def _open(self) -> ResilientClient:
        if self.resilience is None:
            self.resilience = resilience_for(
                "jellystat",
                self.config,
                headers={API_TOKEN_HEADER: self.config.api_key},
            )
        return self.client_factory(self.resilience)

    async def _fetch_history(self) -> list[PlayHistoryEntry]:
        entries: list[PlayHistoryEntry] = []
        page = 1
        async with self._open() as client:
            while True:
                history = await self._request_page(client, page=page)
                log.debug(
                    f"Fetched Jellystat history page {page}/{history.pages} "
                    f"({len(history.results)} rows)"
                )
                entries.extend(parse_history_item(item) for item in history.results)
                if page >= history.pages or not history.results:
                    break
                page += 1
        log.debug(f"Fetched {len(entries)} history rows from Jellystat")
        return entries

    async def _request_page(self, client: ResilientClient, *, page: int) -> HistoryPage:
        response = await client.get(
            join_url(self.config.url, "api/getHistory"),
            params={"page": page, "size": self.page_size},
        )
        check_response(response, JellystatAPIError)
        try:
            return HistoryPage.model_validate(response.json())
        except ValidationError as exc:
            raise JellystatAPIError(f"Unexpected Jellystat history payload: {exc}") from exc


if TYPE_CHECKING:
    _source_check: PlayHistorySource = JellystatClient(config=IntegrationConfig())
