"""HTTP client for the Sonarr API."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from pydantic import TypeAdapter, ValidationError

from reclaimr.adapters.servarr import ServarrAPIError, ServarrClient

from .schema import SeriesPayload
from .translator import parse_series

if TYPE_CHECKING:
    from reclaimr.config.settings import IntegrationConfig
    from reclaimr.domain.ports import CatalogEntry, SeriesCatalog

log = getLogger(__name__)

_SERIES = TypeAdapter(list[SeriesPayload])


class SonarrAPIError(ServarrAPIError):
    """Raised when Sonarr returns an unexpected response."""


@dataclass(slots=True)
class SonarrClient(ServarrClient):
    service_name: ClassVar[str] = "sonarr"
    resource: ClassVar[str] = "series"
    error_type: ClassVar[type[ServarrAPIError]] = SonarrAPIError

    def list_series(self) -> list[CatalogEntry]:
        payload = self._list_resource()
        try:
            series = _SERIES.validate_python(payload)
        except ValidationError as exc:
            raise SonarrAPIError(f"Unexpected Sonarr series payload: {exc}") from exc
        log.debug(f"Fetched {len(series)} series from Sonarr")
        return [parse_series(entry) for entry in series]

    def delete_series(self, native_id: int, *, delete_files: bool = True) -> None:
        self._delete_resource(native_id, delete_files=delete_files)


if TYPE_CHECKING:
    _catalog_check: SeriesCatalog = SonarrClient(config=IntegrationConfig())
