"""Incidents and their timeline updates."""

from src.teamops.features.incidents.handlers import router

__all__ = ["router"]
