"""HTTP client for the Jellyseerr API."""

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

from .schema import RequestPage
from .translator import parse_request

if TYPE_CHECKING:
    from reclaimr.adapters.http_resilience import ResilientClient
    from reclaimr.config.settings import IntegrationConfig
    from reclaimr.domain.ports import MediaRequest, RequestSource

log = getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"
DEFAULT_PAGE_SIZE = 50


class JellyseerrAPIError(ServiceAPIError):
    """Raised when Jellyseerr returns an unexpected response."""


@dataclass(slots=True)
class JellyseerrClient:
    config: IntegrationConfig
    resilience: ResilienceConfig | None = None
    client_factory: ClientFactory = default_client_factory
    page_size: int = DEFAULT_PAGE_SIZE

    def list_requests(self) -> list[MediaRequest]:
        return asyncio.run(self._fetch_requests())

    def _open(self) -> ResilientClient:
        if self.resilience is None:
            self.resilience = resilience_for(
                "jellyseerr",
                self.config,
                headers={API_KEY_HEADER: self.config.api_key},
            )
        return self.client_factory(self.resilience)

    async def _fetch_requests(self) -> list[MediaRequest]:
        requests: list[MediaRequest] = []
        page = 1
        async with self._open() as client:
            while True:
                result = await self._request_page(client, skip=(page - 1) * self.page_size)
                log.debug(
                    f"Fetched Jellyseerr requests page {page}/{result.page_info.pages} "
                    f"({len(result.results)} requests)"
                )
                requests.extend(parse_request(request) for request in result.results)
                if page >= result.page_info.pages or not result.results:
                    break
                page += 1
        log.debug(f"Fetched {len(requests)} requests from Jellyseerr")
        return requests

    async def _request_page(self, client: ResilientClient, *, skip: int) -> RequestPage:
        response = await client.get(
            join_url(self.config.url, "api/v1/request"),
            params={"take": self.page_size, "skip": skip},
        )
        check_response(response, JellyseerrAPIError)
        try:
            return RequestPage.model_validate(response.json())
        except ValidationError as exc:
            raise JellyseerrAPIError(f"Unexpected Jellyseerr request payload: {exc}") from exc


if TYPE_CHECKING:
    _source_check: RequestSource = JellyseerrClient(config=IntegrationConfig())
