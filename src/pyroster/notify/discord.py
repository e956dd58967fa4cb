"""Discord webhook sender."""

from __future__ import annotations

import logging
from typing import Optional

import httpx


logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a message cannot be delivered."""


class DiscordNotifier:
    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.webhook_url = webhook_url
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, message: str) -> None:
        if not self.webhook_url:
            raise NotificationError("Discord webhook URL is not configured")
        try:
            response = self._client.post(self.webhook_url, json={"content": message})
        except httpx.HTTPError as exc:
            logger.error("Error sending Discord message: %s", exc)
            raise NotificationError(f"Discord request failed: {exc}") from exc
        if response.is_error:
            logger.error("Discord API error: %s", response.status_code)
            raise NotificationError(
                f"Discord API error: {response.status_code} {response.reason_phrase}"
            )

    def close(self) -> None:
        self._client.close()
