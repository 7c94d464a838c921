"""NotificationSender that only writes the notification to the log.

Used when no notification service is configured.
"""

from __future__ import annotations

import logging

from holdkeeper.domain.port.notifier import Notification, NotificationSender

logger = logging.getLogger(__name__)


class LoggingNotificationSender(NotificationSender):

    def send(self, notification: Notification) -> None:
        logger.info(
            "Notification %s for %s",
            notification.template,
            notification.recipient,
            extra={"notification": notification.to_payload()},
        )
