"""Base class for downstream event senders."""

import logging
from abc import ABC, abstractmethod

from cdf_translator.models.events import OutgoingEvent, SendResult

logger = logging.getLogger(__name__)


class BaseSender(ABC):
    """Abstract base class for senders delivering Keptn events."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Sender name for logging."""
        ...

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the sender is configured."""
        ...

    @abstractmethod
    async def send(self, event: OutgoingEvent) -> str:
        """Send an event and return the Keptn context assigned to it.

        The returned context may be empty. Failures are raised.
        """
        ...

    async def send_safe(self, event: OutgoingEvent) -> SendResult:
        """Send an event with error handling."""
        if not self.enabled:
            return SendResult(success=False, error=f"Sender {self.name} is not configured")
        try:
            keptn_context = await self.send(event)
        except Exception as e:
            logger.exception(f"Failed to send {event.type} to {self.name}: {e}")
            return SendResult(success=False, error=str(e))
        return SendResult(success=True, keptn_context=keptn_context or "")
