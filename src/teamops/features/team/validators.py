"""Request and response validators for team feed and presence endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class SendFeedMessageRequest(BaseModel):
    """Request model for posting to the team feed."""

    body: str = Field(min_length=1, max_length=2000)
    page: str | None = Field(None, max_length=200, description="Page the author was on")
    image_id: str | None = Field(
        None,
        validation_alias=AliasChoices("image_id", "imageId"),
        description="Accepted for client compatibility; not stored",
    )


class PingPresenceRequest(BaseModel):
    """Request model for a presence heartbeat."""

    page: str | None = Field(None, max_length=200)


class FeedCursor(BaseModel):
    """Keyset position: the (created_at, id) of the last item on a page."""

    created_at: datetime
    id: str


class FeedMessage(BaseModel):
    """A team feed message with display fields resolved for the reader."""

    id: str
    user_sub: str
    by: str = Field(description="Live display name, else the snapshot, else the subject")
    handle: str
    body: str
    mentions: list[str] = Field(default_factory=list)
    page: str | None = None
    created_at: datetime


class FeedPageResponse(BaseModel):
    """One page of the team feed, newest first."""

    items: list[FeedMessage]
    has_more: bool
    next_cursor: FeedCursor | None = None


class OnlineUser(BaseModel):
    """A user seen within the online window."""

    user_sub: str
    label: str
    handle: str
    picture_url: str | None = None
    page: str | None = None
    last_seen: datetime


class PresenceAck(BaseModel):
    ok: bool = True
    last_seen: datetime
