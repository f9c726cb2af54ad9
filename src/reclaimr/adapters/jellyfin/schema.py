"""Pydantic models for the Jellyfin items endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class JellyfinBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserDataPayload(JellyfinBaseModel):
    play_count: int = Field(default=0, alias="PlayCount")
    last_played_date: datetime | None = Field(default=None, alias="LastPlayedDate")
    played: bool = Field(default=False, alias="Played")


class ItemPayload(JellyfinBaseModel):
    id: str = Field(alias="Id")
    name: str = Field(default="", alias="Name")
    type: str = Field(default="", alias="Type")
    production_year: int | None = Field(default=None, alias="ProductionYear")
    date_created: datetime | None = Field(default=None, alias="DateCreated")
    path: str = Field(default="", alias="Path")
    user_data: UserDataPayload = Field(default_factory=UserDataPayload, alias="UserData")
    provider_ids: dict[str, str | None] = Field(default_factory=dict, alias="ProviderIds")


class ItemsResponse(JellyfinBaseModel):
    items: list[ItemPayload] = Field(default_factory=list, alias="Items")
    total_record_count: int = Field(default=0, alias="TotalRecordCount")
