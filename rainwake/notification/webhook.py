"""Webhook notification renderer."""

import httpx

from rainwake.core.config import Settings
from rainwake.core.logging import get_logger
from rainwake.notification.renderer import NotificationKind, NotificationMessage, NotificationRenderer

logger = get_logger(__name__)


class WebhookNotificationRenderer(NotificationRenderer):
    """Posts rendered notifications as JSON to a webhook."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._url = settings.notification_webhook_url
        self._client = client or httpx.AsyncClient(timeout=settings.notification_timeout)

    @property
    def channel_type(self) -> str:
        return "webhook"

    async def show(self, message: NotificationMessage) -> bool:
        """Send the message to the webhook.

        Args:
            message: Notification to deliver

        Returns:
            True if the webhook accepted it
        """
        if not self._url:
            logger.warning("Notification webhook not configured", kind=message.kind.value)
            return False

        try:
            response = await self._client.post(self._url, json=message.model_dump(mode="json"))
        except httpx.HTTPError as e:
            logger.error("Webhook send error", kind=message.kind.value, error=str(e))
            return False

        if response.is_success:
            logger.info("Notification sent", kind=message.kind.value)
            return True

        logger.warning(
            "Webhook send failed",
            kind=message.kind.value,
            status_code=response.status_code,
        )
        return False

    async def cancel_failure(self) -> None:
        """Post a follow-up telling the receiver the failure notice is stale."""
        await self.show(
            NotificationMessage(
                kind=NotificationKind.FAILURE_CLEARED,
                title="Weather check recovered",
                text="The weather was fetched successfully again.",
            )
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
