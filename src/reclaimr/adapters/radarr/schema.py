"""Pydantic models for the Radarr movie resource."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from reclaimr.adapters.servarr import ServarrBaseModel


class QualityDefinition(ServarrBaseModel):
    name: str = ""


class FileQuality(ServarrBaseModel):
    quality: QualityDefinition = Field(default_factory=QualityDefinition)


class MovieFilePayload(ServarrBaseModel):
    path: str = ""
    size: int = 0
    quality: FileQuality | None = None


class MoviePayload(ServarrBaseModel):
    id: int
    title: str
    added: datetime
    year: int | None = None
    path: str = ""
    size_on_disk: int = Field(default=0, alias="sizeOnDisk")
    has_file: bool = Field(default=False, alias="hasFile")
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    tags: list[int] = Field(default_factory=list)
    movie_file: MovieFilePayload | None = Field(default=None, alias="movieFile")
