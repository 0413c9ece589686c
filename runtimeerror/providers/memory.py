import itertools

import structlog

from runtimeerror.core.titles import normalize_title
from runtimeerror.providers.base import ProviderKind, Ticket, TicketAttrs, TicketProvider

logger = structlog.get_logger()


class InMemoryProvider(TicketProvider):
    """Tracker kept in process memory, for local runs and tests."""

    kind = ProviderKind.NONE

    def __init__(
        self,
        repo: str,
        secret: str,
        label: str | None = None,
        reporter_email: str | None = None,
    ):
        super().__init__(repo, secret, label)
        self.reporter_email = reporter_email
        self.tickets: dict[str, Ticket] = {}
        self.comments: dict[str, list[str]] = {}
        self._ids = itertools.count(1)

    async def find_ticket_by_title(self, generic_title: str) -> Ticket | None:
        for ticket in self.tickets.values():
            if normalize_title(ticket.title) == generic_title:
                return ticket
        return None

    async def create_ticket(self, attrs: TicketAttrs) -> Ticket:
        ticket_id = str(next(self._ids))
        labels = [self.label] if self.label else []
        ticket = Ticket(
            id=ticket_id,
            title=attrs.title,
            body=attrs.body,
            url=f"memory://{self.repo}/issues/{ticket_id}",
            labels=labels,
            reporter=self.reporter_email,
        )
        self.tickets[ticket_id] = ticket
        logger.debug("memory_ticket_created", repo=self.repo, ticket_id=ticket_id)
        return ticket

    async def update_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        ticket = self._get(ticket_id)
        ticket.title = attrs.title
        ticket.body = attrs.body
        return ticket

    async def reopen_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        ticket = await self.update_ticket(ticket_id, attrs)
        ticket.state = "open"
        return ticket

    async def add_comment(self, ticket_id: str, body: str) -> None:
        self._get(ticket_id)
        self.comments.setdefault(ticket_id, []).append(body)

    async def resolve_reporter_email(self) -> str | None:
        return self.reporter_email

    def is_closed(self, ticket: Ticket) -> bool:
        return ticket.state == "closed"

    def is_wontfix(self, ticket: Ticket) -> bool:
        return "wontfix" in ticket.labels

    def _get(self, ticket_id: str) -> Ticket:
        try:
            return self.tickets[ticket_id]
        except KeyError:
            raise LookupError(f"No ticket {ticket_id} in {self.repo}") from None
