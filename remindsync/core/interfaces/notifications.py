"""
Abstract interfaces for OS-level alerting and silent push delivery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class AlertRequest:
    """One-shot alert registration. ``identifier`` is the reminder id."""

    identifier: str
    fire_at: datetime
    title: str
    subtitle: str | None = None
    payload: dict[str, str] = field(default_factory=dict)


class INotificationCenter(ABC):
    """
    Scheduled local alerts.

    Implementations: APSchedulerNotificationCenter
    """

    @abstractmethod
    async def add(self, request: AlertRequest) -> None:
        """
        Register an alert.

        Raises:
            SchedulingFailedError: If the center rejects the request
        """
        pass

    @abstractmethod
    async def remove_pending(self, identifiers: list[str]) -> None:
        pass

    @abstractmethod
    async def remove_delivered(self, identifiers: list[str]) -> None:
        pass

    @abstractmethod
    async def remove_all_pending(self) -> None:
        pass

    @abstractmethod
    async def pending_identifiers(self) -> list[str]:
        pass

    @abstractmethod
    async def set_badge(self, count: int) -> None:
        pass


class IPushSender(ABC):
    """
    Silent push transport.

    Implementations: FCMPushSender
    """

    @abstractmethod
    async def send(self, token: str, data: dict[str, str]) -> None:
        """
        Deliver a data-only push to one token.

        Raises:
            PushDeliveryError: On failure; ``invalid_token`` marks dead tokens
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass
