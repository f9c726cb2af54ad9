"""Pydantic models for the Jellystat history endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class JellystatBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class HistoryItemPayload(JellystatBaseModel):
    item_id: str = Field(alias="NowPlayingItemId")
    played_at: datetime = Field(alias="ActivityDateInserted")
    user_name: str | None = Field(default=None, alias="UserName")


class HistoryPage(JellystatBaseModel):
    pages: int = Field(default=0, alias="Pages")
    results: list[HistoryItemPayload] = Field(default_factory=list)
