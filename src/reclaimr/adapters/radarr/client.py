"""HTTP client for the Radarr API."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from pydantic import TypeAdapter, ValidationError

from reclaimr.adapters.servarr import ServarrAPIError, ServarrClient

from .schema import MoviePayload
from .translator import parse_movie

if TYPE_CHECKING:
    from reclaimr.config.settings import IntegrationConfig
    from reclaimr.domain.ports import CatalogEntry, MovieCatalog

log = getLogger(__name__)

_MOVIES = TypeAdapter(list[MoviePayload])


class RadarrAPIError(ServarrAPIError):
    """Raised when Radarr returns an unexpected response."""


@dataclass(slots=True)
class RadarrClient(ServarrClient):
    service_name: ClassVar[str] = "radarr"
    resource: ClassVar[str] = "movie"
    error_type: ClassVar[type[ServarrAPIError]] = RadarrAPIError

    def list_movies(self) -> list[CatalogEntry]:
        """Return every movie Radarr knows about, with or without a file."""

        payload = self._list_resource()
        try:
            movies = _MOVIES.validate_python(payload)
        except ValidationError as exc:
            raise RadarrAPIError(f"Unexpected Radarr movie payload: {exc}") from exc
        log.debug(f"Fetched {len(movies)} movies from Radarr")
        return [parse_movie(movie) for movie in movies]

    def delete_movie(self, native_id: int, *, delete_files: bool = True) -> None:
        self._delete_resource(native_id, delete_files=delete_files)


if TYPE_CHECKING:
    _catalog_check: MovieCatalog = RadarrClient(config=IntegrationConfig())
