"""API handlers for incident endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from src.teamops.features.checklists.validators import OkResponse
from src.teamops.features.incidents.services import IncidentService
from src.teamops.features.incidents.validators import (
    AddIncidentUpdateRequest,
    ChangeStatusRequest,
    CreateIncidentRequest,
    Incident,
    IncidentUpdate,
    StatusResponse,
)
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder, get_db
from src.teamops.services.seed import seed_if_empty

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/incidents", tags=["incidents"])
incident_service = IncidentService()


@router.get("", response_model=list[Incident])
async def list_incidents(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Incident]:
    """List the caller's incidents with their timelines, newest first."""
    try:
        seed_if_empty(db, current_user.sub, current_user.label)
        return incident_service.list_incidents(db, current_user.sub)
    except Exception as e:
        logger.error(f"Error listing incidents for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load incidents.") from e


@router.post("", response_model=Incident, status_code=201)
async def create_incident(
    req: CreateIncidentRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Incident:
    """
    Open a new incident.

    Raises:
        HTTPException: 422 if title or severity is out of range
        HTTPException: 500 if the incident cannot be stored
    """
    try:
        return incident_service.create_incident(db, current_user, req.title, req.severity)
    except Exception as e:
        logger.error(f"Error creating incident for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create incident.") from e


@router.post("/{incident_id}/updates", response_model=IncidentUpdate, status_code=201)
async def add_incident_update(
    incident_id: str,
    req: AddIncidentUpdateRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> IncidentUpdate:
    try:
        return incident_service.add_update(db, current_user, incident_id, req.note)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding update to incident {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add update.") from e


@router.patch("/{incident_id}/status", response_model=StatusResponse)
async def change_incident_status(
    incident_id: str,
    req: ChangeStatusRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> StatusResponse:
    try:
        new_status = incident_service.change_status(db, current_user, incident_id, req.status)
        return StatusResponse(status=new_status)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error changing status of incident {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update status.") from e


@router.delete("/{incident_id}", response_model=OkResponse)
async def delete_incident(
    incident_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> OkResponse:
    try:
        incident_service.delete_incident(db, current_user, incident_id)
        return OkResponse()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting incident {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete incident.") from e
