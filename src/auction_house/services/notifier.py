"""Winner notification delivery."""

import logging
from typing import Protocol

from auction_house.services.errors import NotificationError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget message delivery to one recipient."""

    async def send(self, to: str, subject: str, body: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes messages to the log instead of a mail provider.

    Swap in a real provider behind the same ``send`` signature for production.
    """

    def __init__(self, sender: str):
        self.sender = sender

    async def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise NotificationError("Email recipient missing")
        logger.info(f"[email] {self.sender} -> {to} | {subject}\n{body}")
