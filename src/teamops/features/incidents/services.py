"""Business logic for incidents and their timeline updates."""

import logging
from collections import defaultdict
from datetime import UTC, datetime
from uuid import uuid4

from fastapi import HTTPException

from src.teamops.features.incidents.validators import Incident, IncidentStatus, IncidentUpdate
from src.teamops.services.audit import record_audit
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder

logger = logging.getLogger(__name__)

INCIDENTS_TABLE = "incidents"
UPDATES_TABLE = "incident_updates"


class IncidentService:
    """Service for incident business logic."""

    def get_owned(self, db: SupabaseQueryBuilder, user_sub: str, incident_id: str) -> dict:
        incident = db.find_one(INCIDENTS_TABLE, {"id": incident_id, "user_sub": user_sub})
        if not incident:
            raise HTTPException(status_code=404, detail="not_found")
        return incident

    def list_incidents(self, db: SupabaseQueryBuilder, user_sub: str) -> list[Incident]:
        """Incidents newest first; each timeline is newest first as well."""
        rows = db.list_records(INCIDENTS_TABLE, filters={"user_sub": user_sub}, order_by="created_at")
        updates = db.list_in(
            UPDATES_TABLE,
            "incident_id",
            [row["id"] for row in rows],
            order_by="at",
            order_desc=True,
        )

        updates_by_incident: dict[str, list[IncidentUpdate]] = defaultdict(list)
        for update in updates:
            updates_by_incident[update["incident_id"]].append(IncidentUpdate.model_validate(update))

        return [
            Incident(
                id=row["id"],
                title=row["title"],
                severity=row["severity"],
                status=row["status"],
                created_at=row["created_at"],
                updates=updates_by_incident.get(row["id"], []),
            )
            for row in rows
        ]

    def create_incident(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, title: str, severity: int
    ) -> Incident:
        incident = Incident(
            id=str(uuid4()),
            title=title,
            severity=severity,
            status="open",
            created_at=datetime.now(UTC),
        )
        db.insert_record(
            INCIDENTS_TABLE,
            {
                "id": incident.id,
                "user_sub": user.sub,
                "title": title,
                "severity": severity,
                "status": incident.status,
                "created_at": incident.created_at,
            },
        )
        record_audit(
            db, user.sub, "create", "incident", incident.id, {"title": title, "severity": severity}
        )
        return incident

    def add_update(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, incident_id: str, note: str
    ) -> IncidentUpdate:
        """Append a note to the incident timeline, signed with the caller's label."""
        self.get_owned(db, user.sub, incident_id)
        update = IncidentUpdate(id=str(uuid4()), note=note, by=user.label, at=datetime.now(UTC))
        db.insert_record(
            UPDATES_TABLE,
            {
                "id": update.id,
                "incident_id": incident_id,
                "user_sub": user.sub,
                "note": note,
                "by_label": update.by,
                "at": update.at,
            },
        )
        record_audit(db, user.sub, "add_update", "incident", incident_id, {"update_id": update.id})
        return update

    def change_status(
        self,
        db: SupabaseQueryBuilder,
        user: AuthenticatedUser,
        incident_id: str,
        status: IncidentStatus,
    ) -> IncidentStatus:
        self.get_owned(db, user.sub, incident_id)
        db.update_by_filter(
            INCIDENTS_TABLE, {"id": incident_id, "user_sub": user.sub}, {"status": status}
        )
        record_audit(db, user.sub, "status", "incident", incident_id, {"status": status})
        return status

    def delete_incident(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, incident_id: str
    ) -> None:
        self.get_owned(db, user.sub, incident_id)
        db.delete_by_filter(INCIDENTS_TABLE, {"id": incident_id, "user_sub": user.sub})
        record_audit(db, user.sub, "delete", "incident", incident_id)
