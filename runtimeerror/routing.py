"""Work out which tracker account a message belongs to.

Error reports are mailed to an address of the form::

    "owner/repo" <secret+optional+label@github.example.com>

Notifications sent back to the reporter carry a Message-ID of the form
``<owner/repo/issues/42@github.secret.1391541483184>`` so replies can be
matched to the ticket they are about.
"""

import re
import time
from dataclasses import dataclass

from runtimeerror.config import resolve_secret

_ACCOUNT_ADDRESS = re.compile(
    r'^\s*"(?P<repo>[^"]+)"\s*<(?P<local>[^@<>\s]+)@(?P<provider>[^.@<>\s]+)\.[^<>\s]+>\s*$'
)
_TICKET_MESSAGE_ID = re.compile(
    r"^\s*<(?P<repo>[^<>@\s]+)/issues/(?P<number>[^/<>@\s]+)"
    r"@(?P<provider>[^.<>@\s]+)\.(?P<secret>[^<>@\s]+)\.(?P<trailing>[^.<>@\s]+)>\s*$"
)


@dataclass(frozen=True)
class AccountRoute:
    repo: str
    secret: str
    provider: str
    label: str | None = None
    alias: str | None = None


@dataclass(frozen=True)
class TicketRoute:
    repo: str
    number: str
    provider: str
    secret: str


def extract_account_route(address: str | None) -> AccountRoute | None:
    """Parse ``"repo" <secret[+label...]@provider.host>``; ``None`` if malformed."""
    if not address:
        return None
    match = _ACCOUNT_ADDRESS.match(address)
    if not match:
        return None

    secret, *label_parts = match.group("local").split("+")
    if not secret:
        return None
    label = " ".join(part for part in label_parts if part) or None

    return AccountRoute(
        repo=match.group("repo"),
        secret=resolve_secret(secret),
        provider=match.group("provider"),
        label=label,
        alias=secret,
    )


def extract_ticket_route(message_id: str | None) -> TicketRoute | None:
    """Parse ``<repo/issues/number@provider.secret.trailing>``; ``None`` if malformed."""
    if not message_id:
        return None
    match = _TICKET_MESSAGE_ID.match(message_id)
    if not match:
        return None
    return TicketRoute(
        repo=match.group("repo"),
        number=match.group("number"),
        provider=match.group("provider"),
        secret=match.group("secret"),
    )


def build_ticket_message_id(repo: str, ticket_id: str, provider: str, secret: str, now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"<{repo}/issues/{ticket_id}@{provider}.{secret}.{millis}>"
