"""Checklists and their steps."""

from src.teamops.features.checklists.handlers import router

__all__ = ["router"]
