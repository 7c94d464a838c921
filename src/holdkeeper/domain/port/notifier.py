"""Outbound port: notification delivery.

Delivery is fire-and-forget from the engine's point of view: a failed
send is logged by the caller and never retried here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Notification:
    type: str
    recipient: str
    channels: tuple[str, ...]
    template: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "recipient": self.recipient,
            "channels": list(self.channels),
            "template": self.template,
            "data": self.data,
        }


class NotificationSender(ABC):

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Hand the notification to the delivery system."""
