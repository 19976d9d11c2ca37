"""Request and response validators for checklist endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class CreateChecklistRequest(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    image_id: str | None = Field(None, validation_alias=AliasChoices("image_id", "imageId"))


class AddStepRequest(BaseModel):
    label: str = Field(min_length=3, max_length=200)
    image_id: str | None = Field(None, validation_alias=AliasChoices("image_id", "imageId"))


class ChecklistStep(BaseModel):
    id: str
    label: str
    done: bool = False
    updated_at: datetime
    updated_by: str = Field(description="Display label of whoever last changed the step")


class Checklist(BaseModel):
    id: str
    title: str
    created_at: datetime
    steps: list[ChecklistStep] = Field(default_factory=list)


class ToggleStepResponse(BaseModel):
    ok: bool = True
    step_id: str
    done: bool
    updated_at: datetime
    updated_by: str


class OkResponse(BaseModel):
    ok: bool = True
