import structlog
from fastapi import APIRouter, Depends, Request

from runtimeerror.accounts import AccountRegistry
from runtimeerror.config import resolve_secret
from runtimeerror.core.formatting import json_to_html_tables
from runtimeerror.handler import TicketController
from runtimeerror.inbound.schemas import InboundEmail, InboundResponse
from runtimeerror.providers import UnknownProviderError
from runtimeerror.routing import extract_account_route, extract_ticket_route

logger = structlog.get_logger()
router = APIRouter(prefix="/inbound", tags=["inbound"])


def get_registry(request: Request) -> AccountRegistry:
    return request.app.state.registry


def get_controller(request: Request) -> TicketController:
    return request.app.state.controller


@router.post("/email", response_model=InboundResponse)
async def receive_email(
    email: InboundEmail,
    registry: AccountRegistry = Depends(get_registry),
    controller: TicketController = Depends(get_controller),
):
    """Accept one parsed message from the mail transport.

    Replies to our notifications become ticket comments; anything else
    addressed to an account route is handled as an error report.
    """
    reply_route = extract_ticket_route(email.in_reply_to)
    if reply_route:
        try:
            account = registry.find_or_create(
                reply_route.repo,
                resolve_secret(reply_route.secret),
                reply_route.provider,
                alias=reply_route.secret,
            )
        except UnknownProviderError as e:
            logger.info("inbound_reply_ignored", provider=reply_route.provider, error=str(e))
            return InboundResponse(status="ignored", detail=str(e))

        await account.client.add_comment(reply_route.number, email.body or "")
        logger.info("inbound_reply_commented", repo=account.repo, ticket_id=reply_route.number)
        return InboundResponse(status="commented", ticket_id=reply_route.number)

    route = extract_account_route(email.recipient)
    if route is None:
        logger.info("inbound_unroutable", recipient=email.recipient, message_id=email.message_id)
        return InboundResponse(status="ignored", detail="Unrecognised recipient address")

    try:
        account = registry.find_or_create(
            route.repo, route.secret, route.provider, label=route.label, alias=route.alias,
        )
    except UnknownProviderError as e:
        logger.info("inbound_unknown_provider", provider=route.provider)
        return InboundResponse(status="ignored", detail=str(e))

    body = email.body or ""
    if email.data:
        body += json_to_html_tables(email.data)

    result = await controller.handle(account, email.subject, body)
    return InboundResponse(
        status=result.action.value,
        ticket_id=account.client.id_for(result.ticket) if result.ticket else None,
        ticket_url=result.ticket.url if result.ticket else None,
        occurrences=result.occurrences,
    )
