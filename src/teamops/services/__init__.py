"""Shared services module for external integrations."""

from src.teamops.services.posthog import PostHogService

__all__ = [
    "PostHogService",
]
