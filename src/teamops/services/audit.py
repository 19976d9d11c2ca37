"""Append-only audit trail for business mutations."""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.teamops.services.database import SupabaseQueryBuilder

logger = logging.getLogger(__name__)

AUDIT_TABLE = "audit_log"


def record_audit(
    db: SupabaseQueryBuilder,
    user_sub: str,
    action: str,
    entity_type: str,
    entity_id: str,
    meta: dict[str, Any] | None = None,
) -> None:
    """
    Append an audit entry for a mutation that has already committed.

    Failures are logged and not raised.

    Example:
        >>> record_audit(db, user.sub, "create", "checklist", checklist_id, {"title": title})
    """
    try:
        db.insert_record(
            AUDIT_TABLE,
            {
                "id": str(uuid4()),
                "user_sub": user_sub,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "at": datetime.now(UTC),
                "meta": meta or {},
            },
        )
    except Exception as e:
        logger.error(
            f"Failed to write audit entry {action} {entity_type}/{entity_id}: {e}",
            exc_info=True,
            extra={"error_type": "audit_write_failed", "user_sub": user_sub},
        )
