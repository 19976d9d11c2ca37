"""Demo data for users who have not created anything yet."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from src.teamops.config import settings
from src.teamops.services.audit import record_audit
from src.teamops.services.database import SupabaseQueryBuilder

logger = logging.getLogger(__name__)

DEMO_CHECKLIST_TITLE = "Buffalo Go-Live – Core UI Validation"
DEMO_STEPS = [
    "Confirm Auth0 login + role claims",
    "Validate responsive layout on laptop + iPad",
    "Verify WCAG focus states on key flows",
    "Simulate offline / network-loss behavior",
    "Capture screenshots for release notes",
]
DEMO_INCIDENT_TITLE = "OAuth redirect loop observed on client network"
DEMO_INCIDENT_SEVERITY = 2
DEMO_INCIDENT_STATUS = "investigating"
DEMO_INCIDENT_NOTE = "Added router basename + updated Allowed Web Origins; retesting."


def seed_if_empty(db: SupabaseQueryBuilder, user_sub: str, user_label: str) -> bool:
    """
    Create one demo checklist and one demo incident for a user with no checklists.

    Args:
        db: Database query builder
        user_sub: Subject identifier of the user
        user_label: Display label recorded as author of the seeded rows

    Returns:
        True if demo data was created
    """
    if not settings.seed_demo_data:
        return False
    if db.exists("checklists", {"user_sub": user_sub}):
        return False

    now = datetime.now(UTC)
    checklist_id = str(uuid4())
    db.insert_record(
        "checklists",
        {"id": checklist_id, "user_sub": user_sub, "title": DEMO_CHECKLIST_TITLE, "created_at": now},
    )
    db.insert_records(
        "checklist_steps",
        [
            {
                "id": str(uuid4()),
                "checklist_id": checklist_id,
                "label": label,
                "done": False,
                "updated_at": now,
                "updated_by": user_label,
            }
            for label in DEMO_STEPS
        ],
    )

    incident_id = str(uuid4())
    db.insert_record(
        "incidents",
        {
            "id": incident_id,
            "user_sub": user_sub,
            "title": DEMO_INCIDENT_TITLE,
            "severity": DEMO_INCIDENT_SEVERITY,
            "status": DEMO_INCIDENT_STATUS,
            "created_at": now,
        },
    )
    db.insert_record(
        "incident_updates",
        {
            "id": str(uuid4()),
            "incident_id": incident_id,
            "user_sub": user_sub,
            "note": DEMO_INCIDENT_NOTE,
            "by_label": user_label,
            "at": now,
        },
    )

    record_audit(db, user_sub, "seed", "system", "seed", {"created": True})
    logger.info("Seeded demo data", extra={"user_sub": user_sub})
    return True
