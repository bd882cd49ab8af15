"""Doručovací kanály (email). Jádro rozhoduje jen co a komu poslat."""
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from labtrack.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundMessage:
    subject: str
    body: str
    recipient: str


class NotificationChannel(Protocol):
    def send(self, message: OutboundMessage) -> None: ...


class LogChannel:
    """Výchozí kanál bez SMTP, zprávu jen zaloguje."""

    def send(self, message: OutboundMessage) -> None:
        logger.info("Email pro %s: %s", message.recipient, message.subject)


class SmtpChannel:
    def __init__(self, host: str, port: int, sender: str):
        self.host = host
        self.port = port
        self.sender = sender

    def send(self, message: OutboundMessage) -> None:
        mail = EmailMessage()
        mail["Subject"] = message.subject
        mail["From"] = self.sender
        mail["To"] = message.recipient
        mail.set_content(message.body)
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            smtp.send_message(mail)


def get_channel() -> NotificationChannel:
    if settings.SMTP_HOST:
        return SmtpChannel(settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_SENDER)
    return LogChannel()
