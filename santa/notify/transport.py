"""Mail transports: SMTP for real runs, in-memory recording for dry runs."""
from __future__ import annotations

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage

import certifi

from santa.core.config import SmtpConfig
from santa.core.errors import DeliveryError

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Interface for anything that can deliver an email message."""

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        """Deliver *message* or raise :class:`DeliveryError`."""
        ...


class SmtpTransport(Transport):
    """Sends each message over its own SMTP connection.

    ``ssl: true`` connects with implicit TLS, ``ssl: starttls`` upgrades a
    plain connection, anything else talks plain SMTP. Credentials are only
    sent when ``sasl_username`` is configured.
    """

    def __init__(self, config: SmtpConfig):
        self.config = config

    def _connect(self) -> smtplib.SMTP:
        c = self.config
        if c.use_ssl:
            context = ssl.create_default_context(cafile=certifi.where())
            return smtplib.SMTP_SSL(
                c.host, c.resolved_port,
                local_hostname=c.helo, timeout=c.timeout, context=context,
            )
        return smtplib.SMTP(
            c.host, c.resolved_port, local_hostname=c.helo, timeout=c.timeout,
        )

    def send(self, message: EmailMessage) -> None:
        c = self.config
        recipient = str(message["To"])
        logger.debug(
            "Connecting to %s:%d (ssl=%s)", c.host, c.resolved_port, c.ssl,
        )
        try:
            with self._connect() as server:
                if c.use_starttls:
                    context = ssl.create_default_context(cafile=certifi.where())
                    server.starttls(context=context)
                if c.sasl_username:
                    server.login(c.sasl_username, c.sasl_password or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(recipient, str(exc) or type(exc).__name__) from exc
        logger.info("Delivered mail to %s", recipient)


class RecordingTransport(Transport):
    """Keeps messages in memory instead of sending them."""

    def __init__(self):
        self.deliveries: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        self.deliveries.append(message)
