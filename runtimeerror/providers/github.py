"""GitHub issues as tickets, over the REST v3 API using httpx."""

import httpx
import structlog

from runtimeerror.config import settings
from runtimeerror.core.titles import normalize_title
from runtimeerror.providers.base import ProviderKind, Ticket, TicketAttrs, TicketProvider

logger = structlog.get_logger()

PER_PAGE = 100


class GitHubProvider(TicketProvider):
    kind = ProviderKind.GITHUB

    def __init__(
        self,
        repo: str,
        secret: str,
        label: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(repo, secret, label)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.GITHUB_API_URL.rstrip("/"),
            headers={
                "Authorization": f"token {self.secret}",
                "Accept": "application/vnd.github+json",
            },
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _labels(self) -> list[str]:
        labels = [settings.GITHUB_ISSUE_LABEL]
        if self.label:
            labels.extend(self.label.split())
        return labels

    async def find_ticket_by_title(self, generic_title: str) -> Ticket | None:
        """Scan labelled issues (open and closed, newest first) for a matching generic title."""
        async with self._client() as client:
            for page in range(1, settings.GITHUB_SEARCH_PAGES + 1):
                resp = await client.get(
                    f"/repos/{self.repo}/issues",
                    params={
                        "state": "all",
                        "labels": settings.GITHUB_ISSUE_LABEL,
                        "sort": "created",
                        "direction": "desc",
                        "per_page": PER_PAGE,
                        "page": page,
                    },
                )
                resp.raise_for_status()
                issues = resp.json()

                for issue in issues:
                    if "pull_request" in issue:
                        continue
                    if normalize_title(issue.get("title")) == generic_title:
                        return _to_ticket(issue)

                if len(issues) < PER_PAGE:
                    break
        return None

    async def create_ticket(self, attrs: TicketAttrs) -> Ticket:
        async with self._client() as client:
            resp = await client.post(
                f"/repos/{self.repo}/issues",
                json={"title": attrs.title, "body": attrs.body, "labels": self._labels()},
            )
            resp.raise_for_status()
            ticket = _to_ticket(resp.json())
        logger.info("github_issue_created", repo=self.repo, number=ticket.id)
        return ticket

    async def update_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        return await self._patch(ticket_id, {"title": attrs.title, "body": attrs.body})

    async def reopen_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        return await self._patch(
            ticket_id, {"title": attrs.title, "body": attrs.body, "state": "open"},
        )

    async def add_comment(self, ticket_id: str, body: str) -> None:
        async with self._client() as client:
            resp = await client.post(
                f"/repos/{self.repo}/issues/{ticket_id}/comments",
                json={"body": body},
            )
            resp.raise_for_status()

    async def resolve_reporter_email(self) -> str | None:
        """Primary verified address of the token's owner."""
        async with self._client() as client:
            resp = await client.get("/user/emails")
            resp.raise_for_status()
            emails = resp.json()

        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        for entry in emails:
            if entry.get("verified"):
                return entry.get("email")
        return None

    def is_closed(self, ticket: Ticket) -> bool:
        return ticket.state == "closed"

    def is_wontfix(self, ticket: Ticket) -> bool:
        wontfix = settings.GITHUB_WONTFIX_LABEL.lower()
        return any(label.lower() == wontfix for label in ticket.labels)

    async def _patch(self, ticket_id: str, payload: dict) -> Ticket:
        async with self._client() as client:
            resp = await client.patch(f"/repos/{self.repo}/issues/{ticket_id}", json=payload)
            resp.raise_for_status()
            return _to_ticket(resp.json())


def _to_ticket(issue: dict) -> Ticket:
    return Ticket(
        id=str(issue.get("number", "")),
        title=issue.get("title") or "",
        body=issue.get("body") or "",
        url=issue.get("html_url") or issue.get("url"),
        state=issue.get("state") or "open",
        labels=[
            label["name"] if isinstance(label, dict) else str(label)
            for label in issue.get("labels") or []
        ],
        reporter=(issue.get("user") or {}).get("login"),
        raw=issue,
    )
