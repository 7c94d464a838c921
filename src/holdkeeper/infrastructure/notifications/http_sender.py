"""NotificationSender that POSTs to an external notification service."""

from __future__ import annotations

import logging

import httpx

from holdkeeper.domain.port.notifier import Notification, NotificationSender

logger = logging.getLogger(__name__)


class HttpNotificationSender(NotificationSender):
    """Delivers each notification as one JSON POST to ``{base_url}/notifications``.

    Non-2xx responses raise ``httpx.HTTPStatusError``; the caller logs it.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def send(self, notification: Notification) -> None:
        response = self._client.post("/notifications", json=notification.to_payload())
        response.raise_for_status()
        logger.debug(
            "Notification delivered",
            extra={"template": notification.template, "status_code": response.status_code},
        )

    def close(self) -> None:
        self._client.close()
