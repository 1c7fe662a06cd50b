"""Outcome notification by email"""

import asyncio
import logging
import mimetypes
import smtplib
import socket
from dataclasses import dataclass, field
from email.message import EmailMessage
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..models.config import NotificationConfig

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A composed outcome message"""
    subject: str
    body: str
    recipients: List[str]
    attachments: List[Path] = field(default_factory=list)


def _error_block(errors: Sequence[str]) -> str:
    if not errors:
        return ""
    return "\n\nErrors:\n" + "\n".join(f"  - {e}" for e in errors)


def compose_build(application: str,
                  version: Optional[int],
                  user: str,
                  success: bool,
                  recipients: Sequence[str],
                  attachments: Sequence[Path] = (),
                  errors: Sequence[str] = (),
                  release_path: Optional[Path] = None,
                  test_build: bool = False) -> Notification:
    outcome = "succeeded" if success else "FAILED"
    kind = "Test build" if test_build else "Build"
    label = f"{application} version {version}" if version else application
    subject = f"{kind} {outcome}: {label}"

    lines = [
        f"{kind} of {label} {outcome}.",
        f"Launched by: {user}",
        f"Host: {socket.gethostname()}",
    ]
    if release_path:
        lines.append(f"Release folder: {release_path}")
    if attachments:
        lines.append("Log files attached.")

    return Notification(subject, "\n".join(lines) + _error_block(errors), list(recipients), list(attachments))


def compose_deploy(application: str,
                   version: Optional[int],
                   nickname: str,
                   server: Optional[str],
                   user: str,
                   success: bool,
                   recipients: Sequence[str],
                   attachments: Sequence[Path] = (),
                   errors: Sequence[str] = (),
                   context: Optional[str] = None) -> Notification:
    outcome = "succeeded" if success else "FAILED"
    label = f"{application} version {version}" if version else application
    target = f"{nickname} ({server})" if server else nickname
    subject = f"Deploy {outcome}: {label} to {target}"

    lines = [
        f"Deploy of {label} to {target} {outcome}.",
        f"Launched by: {user}",
        f"Host: {socket.gethostname()}",
    ]
    if context:
        lines.append(f"Descriptor: {context}")
    if attachments:
        lines.append("Log files attached.")

    return Notification(subject, "\n".join(lines) + _error_block(errors), list(recipients), list(attachments))


class NotificationService:
    """Send composed notifications over SMTP.

    Sending never raises: a delivery failure is logged and reported as False
    so that it cannot change the outcome of the attempt being reported.
    """

    def __init__(self, config: NotificationConfig,
                 smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP):
        self.config = config
        self.smtp_factory = smtp_factory

    def recipients_or_admins(self, recipients: Optional[Sequence[str]]) -> List[str]:
        return list(recipients) if recipients else list(self.config.admin_emails)

    def build_message(self, notification: Notification) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = notification.subject
        message["From"] = self.config.from_address
        message["To"] = ", ".join(notification.recipients)
        message.set_content(notification.body)

        for path in notification.attachments:
            try:
                data = Path(path).read_bytes()
            except OSError as e:
                logger.warning("Could not attach %s: %s", path, e)
                continue
            ctype, _ = mimetypes.guess_type(str(path))
            maintype, subtype = (ctype or "text/plain").split("/", 1)
            message.add_attachment(data, maintype=maintype, subtype=subtype, filename=Path(path).name)

        return message

    def send(self, notification: Notification) -> bool:
        """Deliver a notification; returns True when the server accepted it"""
        if not self.config.enabled:
            logger.info("Notifications disabled, not sending: %s", notification.subject)
            return False
        if not notification.recipients:
            logger.warning("No recipients for notification: %s", notification.subject)
            return False

        message = self.build_message(notification)
        try:
            server = self.smtp_factory(self.config.host, self.config.port)
            try:
                if self.config.use_tls:
                    server.starttls()
                if self.config.username and self.config.password:
                    server.login(self.config.username, self.config.password)
                server.send_message(message)
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send notification '%s': %s", notification.subject, e)
            return False

        logger.info("Notification sent to %s", ", ".join(notification.recipients))
        return True

    async def send_async(self, notification: Notification) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.send, notification))
