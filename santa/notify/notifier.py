"""Compose and deliver one message per assignment."""
from __future__ import annotations

from email.message import EmailMessage
from typing import Iterable, Optional

from santa.core.config import EmailConfig
from santa.core.logging import EventLogger
from santa.core.types import Assignment
from santa.notify.message import build_message
from santa.notify.transport import Transport


class Notifier:
    """Tells each giver who they drew.

    Delivery is sequential and fail-fast: the first :class:`DeliveryError`
    propagates and nothing after it is sent. Nothing is retried.
    """

    def __init__(
        self,
        config: EmailConfig,
        transport: Transport,
        dry_run: bool = False,
        event_logger: Optional[EventLogger] = None,
    ):
        self.config = config
        self.transport = transport
        self.dry_run = dry_run
        self.event_logger = event_logger

    def compose(self, assignment: Assignment) -> EmailMessage:
        return build_message(self.config.header, self.config.body, assignment)

    def send(self, assignment: Assignment) -> EmailMessage:
        message = self.compose(assignment)
        self.transport.send(message)
        if self.event_logger:
            self.event_logger.log_delivery(assignment.giver.display, self.dry_run)
        return message

    def notify(self, assignments: Iterable[Assignment]) -> list[EmailMessage]:
        return [self.send(a) for a in assignments]
