"""Base HTTP client for the Radarr/Sonarr v3 API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from pydantic import TypeAdapter, ValidationError

from reclaimr.adapters.http_resilience import (
    ClientFactory,
    ResilienceConfig,
    ServiceAPIError,
    check_response,
    default_client_factory,
    join_url,
    resilience_for,
)

from .schema import TagPayload

if TYPE_CHECKING:
    from reclaimr.adapters.http_resilience import ResilientClient
    from reclaimr.config.settings import IntegrationConfig

log = getLogger(__name__)

API_PREFIX = "api/v3"
API_KEY_HEADER = "X-Api-Key"
_DELETE_ACCEPTED = frozenset({200, 204})

_TAGS = TypeAdapter(list[TagPayload])


class ServarrAPIError(ServiceAPIError):
    """Raised when a Radarr or Sonarr instance returns an unexpected response."""


@dataclass(slots=True)
class ServarrClient:
    config: IntegrationConfig
    resilience: ResilienceConfig | None = None
    client_factory: ClientFactory = default_client_factory

    service_name: ClassVar[str] = "servarr"
    resource: ClassVar[str] = ""
    error_type: ClassVar[type[ServarrAPIError]] = ServarrAPIError

    def list_tags(self) -> dict[int, str]:
        payload = asyncio.run(self._get_json("tag"))
        try:
            tags = _TAGS.validate_python(payload)
        except ValidationError as exc:
            raise self.error_type(f"Unexpected {self.service_name} tag payload: {exc}") from exc
        log.debug(f"Fetched {len(tags)} tags from {self.service_name}")
        return {tag.id: tag.label for tag in tags}

    def _list_resource(self) -> object:
        return asyncio.run(self._get_json(self.resource))

    def _delete_resource(self, native_id: int, *, delete_files: bool) -> None:
        asyncio.run(self._delete(f"{self.resource}/{native_id}", delete_files=delete_files))
        log.info(
            f"Deleted {self.resource} {native_id} from {self.service_name} "
            f"(delete_files={delete_files})"
        )

    def _open(self) -> ResilientClient:
        if self.resilience is None:
            self.resilience = resilience_for(
                self.service_name,
                self.config,
                headers={API_KEY_HEADER: self.config.api_key},
            )
        return self.client_factory(self.resilience)

    def _url(self, path: str) -> str:
        return join_url(self.config.url, f"{API_PREFIX}/{path}")

    async def _get_json(self, path: str) -> object:
        async with self._open() as client:
            response = await client.get(self._url(path))
            check_response(response, self.error_type)
            return response.json()

    async def _delete(self, path: str, *, delete_files: bool) -> None:
        async with self._open() as client:
            response = await client.delete(
                self._url(path),
                params={"deleteFiles": str(delete_files).lower()},
            )
            check_response(response, self.error_type, accepted=_DELETE_ACCEPTED)
