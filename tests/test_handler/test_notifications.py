import pytest

from runtimeerror.config import Settings
from runtimeerror.notifications import LogMailer, Notifier, SmtpMailer, mailer_from_settings
from runtimeerror.providers import Ticket
from tests.conftest import RecordingMailer


def test_mailer_from_settings():
    assert isinstance(mailer_from_settings(Settings(SMTP_HOST="")), LogMailer)
    mailer = mailer_from_settings(
        Settings(SMTP_HOST="smtp.acme.io", SMTP_PORT=2525, NOTIFY_FROM="bot@acme.io", SMTP_TIMEOUT_SECONDS=5.0)
    )
    assert isinstance(mailer, SmtpMailer)
    assert (mailer.host, mailer.port, mailer.sender, mailer.timeout) == ("smtp.acme.io", 2525, "bot@acme.io", 5.0)


def test_smtp_message_headers():
    mailer = SmtpMailer("smtp.acme.io", sender="bot@acme.io")
    msg = mailer.build_message(
        "verified@email.com", "Found a bug", "body\n", headers={"Message-ID": "<a/issues/1@github.s.1>"},
    )
    assert msg["To"] == "verified@email.com"
    assert msg["From"] == "bot@acme.io"
    assert msg["Subject"] == "Found a bug"
    assert msg["Message-ID"] == "<a/issues/1@github.s.1>"
    assert msg.get_content() == "body\n"


@pytest.mark.asyncio
async def test_notify_uses_reporter_address(registry):
    account = registry.find_or_create("octocat/Hello-World", "resolved", "none", alias="abc.def")
    account.client.reporter_email = "verified@email.com"
    mailer = RecordingMailer()
    ticket = Ticket(
        id="1347",
        title="Found a bug",
        body="I'm having a problem with this.",
        url="https://github.com/octocat/Hello-World/issues/1347",
        reporter="octocat",
    )

    assert await Notifier(mailer).notify(account, ticket) is True

    message = mailer.sent[0]
    assert message["to"] == "verified@email.com"
    assert message["subject"] == "Found a bug"
    assert "https://github.com/octocat/Hello-World/issues/1347" in message["body"]
    assert "octocat" in message["body"]
    # the addressed alias goes out, never the resolved secret
    assert "@none.abc.def." in message["headers"]["Message-ID"]
    assert "resolved" not in message["headers"]["Message-ID"]


@pytest.mark.asyncio
async def test_log_mailer_accepts_message():
    await LogMailer().send_message("a@b.c", "subject", "body")
