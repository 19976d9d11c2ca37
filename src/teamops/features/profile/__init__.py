"""Current-user profile."""

from src.teamops.features.profile.handlers import router

__all__ = ["router"]
