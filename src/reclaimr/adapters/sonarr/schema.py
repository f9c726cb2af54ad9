"""Pydantic models for the Sonarr series resource."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from reclaimr.adapters.servarr import ServarrBaseModel


class SeriesStatistics(ServarrBaseModel):
    episode_file_count: int = Field(default=0, alias="episodeFileCount")
    episode_count: int = Field(default=0, alias="episodeCount")
    size_on_disk: int = Field(default=0, alias="sizeOnDisk")


class SeriesPayload(ServarrBaseModel):
    id: int
    title: str
    added: datetime
    year: int | None = None
    path: str = ""
    tvdb_id: int | None = Field(default=None, alias="tvdbId")
    tags: list[int] = Field(default_factory=list)
    statistics: SeriesStatistics = Field(default_factory=SeriesStatistics)

    @property
    def has_files(self) -> bool:
        return self.statistics.episode_file_count > 0
