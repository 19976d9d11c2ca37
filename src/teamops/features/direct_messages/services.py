"""Business logic for one-to-one direct messages."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from src.teamops.features.direct_messages.validators import DirectMessage, MessageThread
from src.teamops.features.team.service import display_fields
from src.teamops.services.audit import record_audit
from src.teamops.services.database import SupabaseQueryBuilder
from src.teamops.services.identity import ProfileStore

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "messages"
THREADS_FUNCTION = "list_message_threads"
CONVERSATION_LIMIT = 200


class SelfMessageError(ValueError):
    """Raised when a user tries to message themselves."""


class DirectMessageService:
    """Service for direct message business logic."""

    def send(self, db: SupabaseQueryBuilder, sender_sub: str, to: str, body: str) -> DirectMessage:
        """
        Store a direct message.

        Raises:
            SelfMessageError: If ``to`` is the sender
        """
        if to == sender_sub:
            raise SelfMessageError("Cannot message yourself")

        message = DirectMessage(
            id=str(uuid4()),
            sender_sub=sender_sub,
            receiver_sub=to,
            body=body,
            created_at=datetime.now(UTC),
        )
        db.insert_record(MESSAGES_TABLE, message.model_dump())
        record_audit(db, sender_sub, "send", "message", message.id, {"to": to})
        return message

    def list_threads(self, db: SupabaseQueryBuilder, user_sub: str) -> list[MessageThread]:
        """One entry per counterpart, most recent conversation first."""
        rows = db.call_function(THREADS_FUNCTION, {"p_user_sub": user_sub})
        profiles = ProfileStore(db).get_many(row["other_sub"] for row in rows)

        threads = []
        for row in rows:
            label, handle = display_fields(row["other_sub"], profiles.get(row["other_sub"]), None, None)
            threads.append(
                MessageThread(
                    other_sub=row["other_sub"],
                    other_label=label,
                    other_handle=handle,
                    last_body=row["body"],
                    last_at=row["created_at"],
                    last_from=row["sender_sub"],
                )
            )

        threads.sort(key=lambda thread: thread.last_at, reverse=True)
        return threads

    def conversation(
        self, db: SupabaseQueryBuilder, user_sub: str, other_sub: str
    ) -> list[DirectMessage]:
        rows = db.list_matching_any(
            MESSAGES_TABLE,
            [
                {"sender_sub": user_sub, "receiver_sub": other_sub},
                {"sender_sub": other_sub, "receiver_sub": user_sub},
            ],
            order_by="created_at",
            order_desc=False,
            limit=CONVERSATION_LIMIT,
        )
        return [DirectMessage.model_validate(row) for row in rows]
