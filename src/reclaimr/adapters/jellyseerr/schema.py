"""Pydantic models for the Jellyseerr request endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class JellyseerrBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RequestMediaPayload(JellyseerrBaseModel):
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    tvdb_id: int | None = Field(default=None, alias="tvdbId")
    media_type: str | None = Field(default=None, alias="mediaType")


class RequestUserPayload(JellyseerrBaseModel):
    id: int = 0
    display_name: str | None = Field(default=None, alias="displayName")
    jellyfin_username: str | None = Field(default=None, alias="jellyfinUsername")
    username: str | None = None
    email: str | None = None


class RequestPayload(JellyseerrBaseModel):
    id: int = 0
    status: int
    media: RequestMediaPayload = Field(default_factory=RequestMediaPayload)
    requested_by: RequestUserPayload | None = Field(default=None, alias="requestedBy")


class PageInfo(JellyseerrBaseModel):
    pages: int = 0
    results: int = 0


class RequestPage(JellyseerrBaseModel):
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    results: list[RequestPayload] = Field(default_factory=list)
