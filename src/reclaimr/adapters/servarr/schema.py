"""Payload models common to the v3 API of Radarr and Sonarr."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ServarrBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TagPayload(ServarrBaseModel):
    id: int
    label: str
