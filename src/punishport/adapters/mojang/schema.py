"""Pydantic models describing Mojang profile API payloads."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class MojangBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProfilePayload(MojangBaseModel):
    """``GET /users/profiles/minecraft/{name}``; ``id`` comes without dashes."""

    id: UUID
    name: str
