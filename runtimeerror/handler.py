"""Ticket lifecycle: turn an error report into at most one tracker write.

For each ``(account, generic title)`` the handler moves through::

    idle -> pending(count) -> created | updated | reopened | wontfix -> idle

Only the first report of a burst looks the ticket up. Reports that arrive
while that lookup is in flight are counted and returned as duplicates; the
write that follows carries their count in the embedded occurrence history.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable

import structlog

from runtimeerror.accounts import Account
from runtimeerror.core.duplicates import DuplicateCounter
from runtimeerror.core.history import OccurrenceCodec, strip_html_wrapper
from runtimeerror.core.titles import normalize_title
from runtimeerror.notifications import Notifier
from runtimeerror.providers import Ticket, TicketAttrs

logger = structlog.get_logger()


class TicketAction(str, Enum):
    DUPLICATE = "duplicate"
    CREATED = "created"
    UPDATED = "updated"
    REOPENED = "reopened"
    WONTFIX = "wontfix"


@dataclass
class HandleResult:
    action: TicketAction
    ticket: Ticket | None = None
    occurrences: int = 0
    notified: bool = False


class TicketController:
    def __init__(
        self,
        duplicates: DuplicateCounter,
        codec: OccurrenceCodec,
        notifier: Notifier,
        today: Callable[[], date] = date.today,
    ):
        self.duplicates = duplicates
        self.codec = codec
        self.notifier = notifier
        self.today = today

    async def handle(self, account: Account, title: str | None, body: str | None) -> HandleResult:
        generic_title = normalize_title(title)
        log = logger.bind(repo=account.repo, provider=account.provider.value, generic_title=generic_title)

        if self.duplicates.note_occurrence(account, generic_title):
            log.info("ticket_occurrence_folded")
            return HandleResult(action=TicketAction.DUPLICATE)

        client = account.client
        try:
            ticket = await client.find_ticket_by_title(generic_title)
        finally:
            occurrences = self.duplicates.consume_and_reset(account, generic_title)

        final_body = self.codec.update_body_suffix(
            strip_html_wrapper(body),
            occurrences,
            prior_body=ticket.body if ticket else None,
            today=self.today(),
        )
        attrs = TicketAttrs(title=title or "", body=final_body)

        if ticket is None:
            action = TicketAction.CREATED
            ticket = await client.create_ticket(attrs)
        elif client.is_wontfix(ticket):
            log.info("ticket_wontfix_skipped", ticket_id=client.id_for(ticket), occurrences=occurrences)
            return HandleResult(action=TicketAction.WONTFIX, ticket=ticket, occurrences=occurrences)
        elif client.is_closed(ticket):
            action = TicketAction.REOPENED
            ticket = await client.reopen_ticket(client.id_for(ticket), attrs)
        else:
            action = TicketAction.UPDATED
            ticket = await client.update_ticket(client.id_for(ticket), attrs)

        log.info(f"ticket_{action.value}", ticket_id=client.id_for(ticket), occurrences=occurrences)

        notified = False
        try:
            notified = await self.notifier.notify(account, ticket)
        except Exception as e:
            log.error("notification_failed", ticket_id=client.id_for(ticket), error=str(e))

        return HandleResult(action=action, ticket=ticket, occurrences=occurrences, notified=notified)
