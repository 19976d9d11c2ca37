"""API handlers for checklist endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from src.teamops.features.checklists.services import ChecklistService
from src.teamops.features.checklists.validators import (
    AddStepRequest,
    Checklist,
    ChecklistStep,
    CreateChecklistRequest,
    OkResponse,
    ToggleStepResponse,
)
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder, get_db
from src.teamops.services.seed import seed_if_empty

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checklists", tags=["checklists"])
checklist_service = ChecklistService()


@router.get("", response_model=list[Checklist])
async def list_checklists(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Checklist]:
    """
    List the caller's checklists, newest first, with their steps.

    A caller with no checklists gets demo data seeded on first call.
    """
    try:
        seed_if_empty(db, current_user.sub, current_user.label)
        return checklist_service.list_checklists(db, current_user.sub)
    except Exception as e:
        logger.error(f"Error listing checklists for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load checklists.") from e


@router.post("", response_model=Checklist, status_code=201)
async def create_checklist(
    req: CreateChecklistRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Checklist:
    try:
        return checklist_service.create_checklist(db, current_user, req.title)
    except Exception as e:
        logger.error(f"Error creating checklist for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create checklist.") from e


@router.get("/{checklist_id}", response_model=Checklist)
async def get_checklist(
    checklist_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Checklist:
    """
    Get one checklist with its steps.

    Raises:
        HTTPException: 404 if not found or not owned by the caller
    """
    try:
        return checklist_service.get_checklist(db, current_user.sub, checklist_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching checklist {checklist_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load checklist.") from e


@router.delete("/{checklist_id}", response_model=OkResponse)
async def delete_checklist(
    checklist_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> OkResponse:
    try:
        checklist_service.delete_checklist(db, current_user, checklist_id)
        return OkResponse()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting checklist {checklist_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete checklist.") from e


@router.post("/{checklist_id}/steps", response_model=ChecklistStep, status_code=201)
async def add_step(
    checklist_id: str,
    req: AddStepRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> ChecklistStep:
    try:
        return checklist_service.add_step(db, current_user, checklist_id, req.label)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding step to checklist {checklist_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add step.") from e


@router.delete("/{checklist_id}/steps/{step_id}", response_model=OkResponse)
async def delete_step(
    checklist_id: str,
    step_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> OkResponse:
    try:
        checklist_service.delete_step(db, current_user, checklist_id, step_id)
        return OkResponse()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting step {step_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete step.") from e


@router.post("/{checklist_id}/steps/{step_id}/toggle", response_model=ToggleStepResponse)
async def toggle_step(
    checklist_id: str,
    step_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> ToggleStepResponse:
    """Flip a step between done and not done, recording who changed it."""
    try:
        return checklist_service.toggle_step(db, current_user, checklist_id, step_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error toggling step {step_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update step.") from e
