"""One-to-one direct messages."""

from src.teamops.features.direct_messages.handlers import router

__all__ = ["router"]
