"""Request and response validators for incident endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

IncidentStatus = Literal["open", "investigating", "mitigated", "resolved"]


class CreateIncidentRequest(BaseModel):
    title: str = Field(min_length=3, max_length=160)
    severity: int = Field(ge=1, le=5)
    image_id: str | None = Field(None, validation_alias=AliasChoices("image_id", "imageId"))


class AddIncidentUpdateRequest(BaseModel):
    note: str = Field(min_length=2, max_length=500)
    image_id: str | None = Field(None, validation_alias=AliasChoices("image_id", "imageId"))


class ChangeStatusRequest(BaseModel):
    status: IncidentStatus


class IncidentUpdate(BaseModel):
    id: str
    note: str
    by: str = Field(validation_alias=AliasChoices("by", "by_label"))
    at: datetime


class Incident(BaseModel):
    id: str
    title: str
    severity: int
    status: IncidentStatus
    created_at: datetime
    updates: list[IncidentUpdate] = Field(default_factory=list)


class StatusResponse(BaseModel):
    ok: bool = True
    status: IncidentStatus
