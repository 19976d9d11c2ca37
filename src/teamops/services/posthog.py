"""PostHog analytics service for event tracking."""

import logging

import posthog

from src.teamops.config import settings

logger = logging.getLogger(__name__)


class PostHogService:
    """Service for tracking analytics events via PostHog. No-op without an API key."""

    def __init__(self) -> None:
        if settings.posthog_api_key:
            posthog.api_key = settings.posthog_api_key
            posthog.host = settings.posthog_host

    @property
    def enabled(self) -> bool:
        return bool(settings.posthog_api_key)

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Subject identifier, or "anonymous" before authentication
            event: Event name (e.g., "authentication_failed", "feed_message_sent")
            properties: Optional event properties

        Example:
            >>> PostHogService().capture("auth0|123", "feed_message_sent", {"mentions": 2})
        """
        if not self.enabled:
            return

        try:
            posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
        except Exception as e:
            # Analytics must never fail a request.
            logger.warning(f"PostHog capture failed: {e}", extra={"event": event})
