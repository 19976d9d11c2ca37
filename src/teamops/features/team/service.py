"""Business logic for the team feed and presence."""

import logging
import re
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from src.teamops.config import settings
from src.teamops.features.team.validators import (
    FeedCursor,
    FeedMessage,
    FeedPageResponse,
    OnlineUser,
)
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder
from src.teamops.services.identity import ProfileStore, UserProfile, to_handle

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "team_messages"
PRESENCE_TABLE = "presence"

MENTION_PATTERN = re.compile(r"@([a-zA-Z0-9_.-]+)")


def extract_mentions(body: str, limit: int | None = None) -> list[str]:
    """
    Collect ``@handle`` mentions from a message body.

    Lowercased, deduplicated in first-seen order, capped at ``limit``
    (default ``settings.max_mentions_per_message``).

    Example:
        >>> extract_mentions("hey @Alice and @bob, also @Alice")
        ['alice', 'bob']
    """
    cap = settings.max_mentions_per_message if limit is None else limit
    mentions: list[str] = []
    for match in MENTION_PATTERN.finditer(body or ""):
        handle = match.group(1).lower()
        if handle in mentions:
            continue
        if len(mentions) >= cap:
            break
        mentions.append(handle)
    return mentions


def display_fields(
    user_sub: str,
    profile: UserProfile | None,
    snapshot_label: str | None,
    snapshot_handle: str | None,
) -> tuple[str, str]:
    """
    Label and handle to show for a stored event.

    Live profile first, then the snapshot taken at write time, then the
    subject itself, so an event is always displayable.
    """
    label = (profile.display_name if profile else None) or snapshot_label or user_sub
    handle = (
        (profile.handle if profile else None)
        or snapshot_handle
        or to_handle(user_sub)
        or user_sub
    )
    return label, handle


class TeamService:
    """Service for the team feed and presence business logic."""

    def send_message(
        self,
        db: SupabaseQueryBuilder,
        user: AuthenticatedUser,
        body: str,
        page: str | None = None,
    ) -> FeedMessage:
        """
        Store a feed message with a snapshot of the author's label and handle.

        The snapshot comes from the profile resolved for this request. The
        author is also marked present (best effort).

        Raises:
            Exception: If the message insert fails
        """
        created_at = datetime.now(UTC)
        row = {
            "id": str(uuid4()),
            "user_sub": user.sub,
            "by_label": user.label,
            "handle": user.handle,
            "body": body,
            "mentions": extract_mentions(body),
            "page": page,
            "created_at": created_at,
        }
        db.insert_record(MESSAGES_TABLE, row)
        logger.info(
            "Feed message stored",
            extra={"user_sub": user.sub, "message_id": row["id"], "mentions": len(row["mentions"])},
        )

        try:
            self.ping_presence(db, user, page, now=created_at)
        except Exception as e:
            logger.warning(
                f"Presence update after message failed: {e}",
                extra={"error_type": "presence_upsert_failed", "user_sub": user.sub},
            )

        return FeedMessage(
            id=row["id"],
            user_sub=user.sub,
            by=user.label,
            handle=user.handle,
            body=body,
            mentions=row["mentions"],
            page=page,
            created_at=created_at,
        )

    def list_messages(
        self,
        db: SupabaseQueryBuilder,
        cursor: FeedCursor | None = None,
        limit: int | None = None,
    ) -> FeedPageResponse:
        """
        One page of the feed, newest first, with live authorship.

        Fetches ``limit + 1`` rows strictly before ``cursor`` to compute
        ``has_more``; ``next_cursor`` points at the last returned item.
        """
        page_size = limit or settings.feed_page_size
        before = (cursor.created_at, cursor.id) if cursor else None

        rows = db.list_before(
            MESSAGES_TABLE,
            sort_field="created_at",
            tiebreak_field="id",
            before=before,
            limit=page_size + 1,
        )
        has_more = len(rows) > page_size
        rows = rows[:page_size]

        profiles = ProfileStore(db).get_many(row["user_sub"] for row in rows)

        items = []
        for row in rows:
            label, handle = display_fields(
                row["user_sub"],
                profiles.get(row["user_sub"]),
                row.get("by_label"),
                row.get("handle"),
            )
            items.append(
                FeedMessage(
                    id=row["id"],
                    user_sub=row["user_sub"],
                    by=label,
                    handle=handle,
                    body=row["body"],
                    mentions=row.get("mentions") or [],
                    page=row.get("page"),
                    created_at=row["created_at"],
                )
            )

        next_cursor = None
        if items:
            last = items[-1]
            next_cursor = FeedCursor(created_at=last.created_at, id=last.id)

        return FeedPageResponse(items=items, has_more=has_more, next_cursor=next_cursor)

    def ping_presence(
        self,
        db: SupabaseQueryBuilder,
        user: AuthenticatedUser,
        page: str | None = None,
        now: datetime | None = None,
    ) -> datetime:
        """
        Upsert the caller's presence row.

        Returns:
            The recorded last-seen timestamp
        """
        last_seen = now or datetime.now(UTC)
        db.upsert_record(
            PRESENCE_TABLE,
            {
                "user_sub": user.sub,
                "label": user.label,
                "handle": user.handle,
                "page": page,
                "last_seen": last_seen,
            },
            conflict_columns=["user_sub"],
        )
        return last_seen

    def list_online(
        self,
        db: SupabaseQueryBuilder,
        within_seconds: int | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[OnlineUser]:
        """
        Users whose presence is within the recency window, newest first.

        Args:
            db: Database query builder
            within_seconds: Window size (default ``settings.online_window_seconds``)
            limit: Maximum users (default ``settings.online_limit``)
            now: Reference time (defaults to current UTC time)
        """
        window = settings.online_window_seconds if within_seconds is None else within_seconds
        cap = settings.online_limit if limit is None else limit
        cutoff = (now or datetime.now(UTC)) - timedelta(seconds=window)

        rows = db.list_since(PRESENCE_TABLE, "last_seen", cutoff, limit=cap)
        profiles = ProfileStore(db).get_many(row["user_sub"] for row in rows)

        online = []
        for row in rows:
            profile = profiles.get(row["user_sub"])
            label, handle = display_fields(
                row["user_sub"], profile, row.get("label"), row.get("handle")
            )
            online.append(
                OnlineUser(
                    user_sub=row["user_sub"],
                    label=label,
                    handle=handle,
                    picture_url=profile.picture_url if profile else None,
                    page=row.get("page"),
                    last_seen=row["last_seen"],
                )
            )
        return online
