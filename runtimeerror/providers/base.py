"""Issue tracker adapter interface.

Every tracker the service can write to implements ``TicketProvider``. The
ticket lifecycle only ever talks to a tracker through these methods and
never mutates a ``Ticket`` itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ProviderKind(str, Enum):
    NONE = "none"
    GITHUB = "github"
    JIRA = "jira"


class UnknownProviderError(ValueError):
    pass


def parse_provider_kind(value: "str | ProviderKind") -> ProviderKind:
    if isinstance(value, ProviderKind):
        return value
    try:
        return ProviderKind(value.lower())
    except (AttributeError, ValueError):
        raise UnknownProviderError(f"Unknown provider: {value!r}") from None


@dataclass(frozen=True)
class TicketAttrs:
    title: str
    body: str


@dataclass
class Ticket:
    id: str
    title: str
    body: str = ""
    url: str | None = None
    state: str = "open"
    labels: list[str] = field(default_factory=list)
    reporter: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class TicketProvider(ABC):
    kind: ProviderKind

    def __init__(self, repo: str, secret: str, label: str | None = None):
        self.repo = repo
        self.secret = secret
        self.label = label

    @abstractmethod
    async def find_ticket_by_title(self, generic_title: str) -> Ticket | None:
        """Return the ticket whose normalized title equals *generic_title*."""

    @abstractmethod
    async def create_ticket(self, attrs: TicketAttrs) -> Ticket:
        pass

    @abstractmethod
    async def update_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        pass

    @abstractmethod
    async def reopen_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        pass

    @abstractmethod
    async def add_comment(self, ticket_id: str, body: str) -> None:
        pass

    @abstractmethod
    async def resolve_reporter_email(self) -> str | None:
        """Address of the account owner, who receives ticket notifications."""

    @abstractmethod
    def is_closed(self, ticket: Ticket) -> bool:
        pass

    @abstractmethod
    def is_wontfix(self, ticket: Ticket) -> bool:
        pass

    def id_for(self, ticket: Ticket) -> str:
        return ticket.id
