"""Business logic for checklists."""

import logging
from collections import defaultdict
from datetime import UTC, datetime
from uuid import uuid4

from fastapi import HTTPException

from src.teamops.features.checklists.validators import Checklist, ChecklistStep, ToggleStepResponse
from src.teamops.services.audit import record_audit
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder

logger = logging.getLogger(__name__)

CHECKLISTS_TABLE = "checklists"
STEPS_TABLE = "checklist_steps"
TOGGLE_STEP_FUNCTION = "toggle_checklist_step"


class ChecklistService:
    """Service for managing checklists owned by the caller."""

    def get_owned(self, db: SupabaseQueryBuilder, user_sub: str, checklist_id: str) -> dict:
        """
        Get a checklist owned by ``user_sub``.

        Raises:
            HTTPException: 404 if the checklist is absent or owned by someone else
        """
        checklist = db.find_one(CHECKLISTS_TABLE, {"id": checklist_id, "user_sub": user_sub})
        if not checklist:
            raise HTTPException(status_code=404, detail="not_found")
        return checklist

    def list_checklists(self, db: SupabaseQueryBuilder, user_sub: str) -> list[Checklist]:
        """Checklists newest first, each with steps ordered by (updated_at, id)."""
        rows = db.list_records(
            CHECKLISTS_TABLE, filters={"user_sub": user_sub}, order_by="created_at"
        )
        steps = db.list_in(
            STEPS_TABLE,
            "checklist_id",
            [row["id"] for row in rows],
            order_by=["updated_at", "id"],
            order_desc=False,
        )

        steps_by_checklist: dict[str, list[ChecklistStep]] = defaultdict(list)
        for step in steps:
            steps_by_checklist[step["checklist_id"]].append(ChecklistStep.model_validate(step))

        return [
            Checklist(
                id=row["id"],
                title=row["title"],
                created_at=row["created_at"],
                steps=steps_by_checklist.get(row["id"], []),
            )
            for row in rows
        ]

    def get_checklist(self, db: SupabaseQueryBuilder, user_sub: str, checklist_id: str) -> Checklist:
        row = self.get_owned(db, user_sub, checklist_id)
        steps = db.list_records(
            STEPS_TABLE,
            filters={"checklist_id": checklist_id},
            order_by=["updated_at", "id"],
            order_desc=False,
        )
        return Checklist(
            id=row["id"],
            title=row["title"],
            created_at=row["created_at"],
            steps=[ChecklistStep.model_validate(step) for step in steps],
        )

    def create_checklist(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, title: str
    ) -> Checklist:
        checklist = Checklist(id=str(uuid4()), title=title, created_at=datetime.now(UTC))
        db.insert_record(
            CHECKLISTS_TABLE,
            {
                "id": checklist.id,
                "user_sub": user.sub,
                "title": title,
                "created_at": checklist.created_at,
            },
        )
        record_audit(db, user.sub, "create", "checklist", checklist.id, {"title": title})
        return checklist

    def delete_checklist(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, checklist_id: str
    ) -> None:
        """Delete a checklist; its steps go with it (ON DELETE CASCADE)."""
        self.get_owned(db, user.sub, checklist_id)
        db.delete_by_filter(CHECKLISTS_TABLE, {"id": checklist_id, "user_sub": user.sub})
        record_audit(db, user.sub, "delete", "checklist", checklist_id)

    def add_step(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, checklist_id: str, label: str
    ) -> ChecklistStep:
        self.get_owned(db, user.sub, checklist_id)
        step = ChecklistStep(
            id=str(uuid4()),
            label=label,
            done=False,
            updated_at=datetime.now(UTC),
            updated_by=user.label,
        )
        db.insert_record(STEPS_TABLE, {"checklist_id": checklist_id, **step.model_dump()})
        record_audit(
            db, user.sub, "add_step", "checklist", checklist_id, {"step_id": step.id, "label": label}
        )
        return step

    def toggle_step(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, checklist_id: str, step_id: str
    ) -> ToggleStepResponse:
        """
        Flip a step's ``done`` flag in one statement.

        Raises:
            HTTPException: 404 if the checklist or step does not exist
        """
        self.get_owned(db, user.sub, checklist_id)
        rows = db.call_function(
            TOGGLE_STEP_FUNCTION,
            {
                "p_checklist_id": checklist_id,
                "p_step_id": step_id,
                "p_updated_by": user.label,
            },
        )
        if not rows:
            raise HTTPException(status_code=404, detail="not_found")

        step = ChecklistStep.model_validate(rows[0])
        record_audit(
            db, user.sub, "toggle_step", "checklist", checklist_id, {"step_id": step_id, "done": step.done}
        )
        return ToggleStepResponse(
            step_id=step.id, done=step.done, updated_at=step.updated_at, updated_by=step.updated_by
        )

    def delete_step(
        self, db: SupabaseQueryBuilder, user: AuthenticatedUser, checklist_id: str, step_id: str
    ) -> None:
        self.get_owned(db, user.sub, checklist_id)
        deleted = db.delete_by_filter(STEPS_TABLE, {"id": step_id, "checklist_id": checklist_id})
        if not deleted:
            raise HTTPException(status_code=404, detail="not_found")
        record_audit(db, user.sub, "delete_step", "checklist", checklist_id, {"step_id": step_id})
