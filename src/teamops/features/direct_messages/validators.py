"""Request and response validators for direct message endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SendDirectMessageRequest(BaseModel):
    """Accepts ``to``/``receiverSub`` and ``body``/``message`` for the same fields."""

    to: str = Field(
        min_length=1, max_length=256, validation_alias=AliasChoices("to", "receiver_sub", "receiverSub")
    )
    body: str = Field(min_length=1, max_length=2000, validation_alias=AliasChoices("body", "message"))

    @field_validator("to", "body", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class DirectMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    sender_sub: str = Field(
        validation_alias=AliasChoices("sender_sub", "from"), serialization_alias="from"
    )
    receiver_sub: str = Field(
        validation_alias=AliasChoices("receiver_sub", "to"), serialization_alias="to"
    )
    body: str
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "at"), serialization_alias="at"
    )


class MessageThread(BaseModel):
    """Latest message exchanged with one counterpart."""

    other_sub: str
    other_label: str
    other_handle: str
    last_body: str
    last_at: datetime
    last_from: str
