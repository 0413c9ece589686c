"""Tell the account owner which ticket an error report landed in."""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

import structlog

from runtimeerror.config import Settings
from runtimeerror.routing import build_ticket_message_id

logger = structlog.get_logger()


class Mailer(ABC):
    @abstractmethod
    async def send_message(
        self,
        to: str,
        subject: str,
        body: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        pass


class LogMailer(Mailer):
    """Used when no SMTP server is configured: the message is only logged."""

    async def send_message(self, to, subject, body, headers=None):
        logger.info("notification_logged", to=to, subject=subject, headers=headers or {})


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        starttls: bool = True,
        sender: str = "runtimeerror@localhost",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.starttls = starttls
        self.sender = sender
        self.timeout = timeout

    def build_message(self, to, subject, body, headers=None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        for name, value in (headers or {}).items():
            msg[name] = value
        msg.set_content(body)
        return msg

    async def send_message(self, to, subject, body, headers=None):
        msg = self.build_message(to, subject, body, headers)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._deliver, msg)

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)


def mailer_from_settings(settings: Settings) -> Mailer:
    if not settings.SMTP_HOST:
        return LogMailer()
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        starttls=settings.SMTP_STARTTLS,
        sender=settings.NOTIFY_FROM,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )


class Notifier:
    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    async def notify(self, account, ticket) -> bool:
        """Send one message about *ticket* to the account owner.

        Returns False when the provider knows no address for the owner.
        """
        to = await account.client.resolve_reporter_email()
        if not to:
            logger.info("notification_skipped_no_address", repo=account.repo, ticket_id=ticket.id)
            return False

        message_id = build_ticket_message_id(
            account.repo, ticket.id, account.provider.value, account.public_secret,
        )
        lines = [
            f"Ticket {ticket.id} in {account.repo} was updated for:",
            "",
            f"    {ticket.title}",
            "",
        ]
        if ticket.url:
            lines.append(ticket.url)
        if ticket.reporter:
            lines.append(f"Reported by {ticket.reporter}")

        await self.mailer.send_message(
            to,
            ticket.title,
            "\n".join(lines) + "\n",
            headers={"Message-ID": message_id},
        )
        logger.info("notification_sent", repo=account.repo, ticket_id=ticket.id, to=to)
        return True
