"""Pydantic schemas for object API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from s3facade.infra.storage.client import HttpMethod


class PresignRequest(BaseModel):
    """Request body for signing an object URL."""

    bucket: str | None = Field(default=None, max_length=63)
    key: str = Field(min_length=1, max_length=1024)
    expires_in: int = Field(default=1800, ge=1, le=7 * 24 * 3600)
    method: HttpMethod = HttpMethod.GET


class PresignOut(BaseModel):
    url: str
    method: HttpMethod
    expires_at: datetime


class ObjectNamesOut(BaseModel):
    bucket: str
    keys: list[str] = Field(default_factory=list)


class ObjectUrlOut(BaseModel):
    key: str
    url: str
