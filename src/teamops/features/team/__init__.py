"""Team feed and presence."""

from src.teamops.features.team.handlers import router

__all__ = ["router"]
