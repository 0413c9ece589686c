"""Jira Cloud issues as tickets, using httpx.

The account's ``repo`` is the Jira project key and its ``secret`` an API
token belonging to ``JIRA_USER_EMAIL``. Searches go through the v3 JQL
endpoint; issues are read and written through v2 so descriptions stay plain
strings (the occurrence history lives at the end of the description).
"""

import base64

import httpx
import structlog

from runtimeerror.config import settings
from runtimeerror.core.titles import normalize_title
from runtimeerror.providers.base import ProviderKind, Ticket, TicketAttrs, TicketProvider

logger = structlog.get_logger()

MAX_ISSUES_SCANNED = 200
ISSUE_FIELDS = "summary,description,status,resolution,labels,reporter"
WONTFIX_RESOLUTIONS = {"won't fix", "won't do", "wontfix", "won't do/fix"}


class JiraProvider(TicketProvider):
    kind = ProviderKind.JIRA

    def __init__(
        self,
        repo: str,
        secret: str,
        label: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(repo, secret, label)
        self._transport = transport

    def _build_auth_header(self) -> str:
        """Basic auth from the configured Jira user and the account's API token."""
        credentials = f"{settings.JIRA_USER_EMAIL}:{self.secret}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return f"Basic {encoded}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.JIRA_SITE_URL.rstrip("/"),
            headers={
                "Authorization": self._build_auth_header(),
                "Accept": "application/json",
            },
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    async def find_ticket_by_title(self, generic_title: str) -> Ticket | None:
        jql = (
            f'project = "{self.repo}" AND labels = "{settings.JIRA_ISSUE_LABEL}" '
            "ORDER BY created DESC"
        )
        scanned = 0
        next_page_token: str | None = None

        async with self._client() as client:
            while scanned < MAX_ISSUES_SCANNED:
                body: dict = {"jql": jql, "maxResults": 50, "fields": ["summary"]}
                if next_page_token:
                    body["nextPageToken"] = next_page_token

                resp = await client.post(
                    "/rest/api/3/search/jql",
                    headers={"Content-Type": "application/json"},
                    json=body,
                )
                resp.raise_for_status()
                data = resp.json()

                for raw_issue in data.get("issues", []):
                    scanned += 1
                    summary = (raw_issue.get("fields") or {}).get("summary")
                    if normalize_title(summary) == generic_title:
                        return await self._get_issue(client, raw_issue["key"])

                next_page_token = data.get("nextPageToken")
                if not next_page_token or data.get("isLast", True):
                    break
        return None

    async def create_ticket(self, attrs: TicketAttrs) -> Ticket:
        labels = [settings.JIRA_ISSUE_LABEL]
        if self.label:
            labels.extend(self.label.split())

        async with self._client() as client:
            resp = await client.post(
                "/rest/api/2/issue",
                json={
                    "fields": {
                        "project": {"key": self.repo},
                        "issuetype": {"name": settings.JIRA_ISSUE_TYPE},
                        "summary": attrs.title,
                        "description": attrs.body,
                        "labels": labels,
                    },
                },
            )
            resp.raise_for_status()
            ticket = await self._get_issue(client, resp.json()["key"])
        logger.info("jira_issue_created", project=self.repo, issue_key=ticket.id)
        return ticket

    async def update_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        async with self._client() as client:
            await self._put_fields(client, ticket_id, attrs)
            return await self._get_issue(client, ticket_id)

    async def reopen_ticket(self, ticket_id: str, attrs: TicketAttrs) -> Ticket:
        async with self._client() as client:
            resp = await client.get(f"/rest/api/2/issue/{ticket_id}/transitions")
            resp.raise_for_status()
            transition = _reopen_transition(resp.json().get("transitions", []))
            if transition is None:
                logger.warning("jira_no_reopen_transition", issue_key=ticket_id)
            else:
                resp = await client.post(
                    f"/rest/api/2/issue/{ticket_id}/transitions",
                    json={"transition": {"id": transition["id"]}},
                )
                resp.raise_for_status()

            await self._put_fields(client, ticket_id, attrs)
            return await self._get_issue(client, ticket_id)

    async def add_comment(self, ticket_id: str, body: str) -> None:
        async with self._client() as client:
            resp = await client.post(
                f"/rest/api/2/issue/{ticket_id}/comment",
                json={"body": body},
            )
            resp.raise_for_status()

    async def resolve_reporter_email(self) -> str | None:
        async with self._client() as client:
            resp = await client.get("/rest/api/2/myself")
            resp.raise_for_status()
            me = resp.json()
        # emailAddress is hidden by some privacy settings
        return me.get("emailAddress") or settings.JIRA_USER_EMAIL or None

    def is_closed(self, ticket: Ticket) -> bool:
        status = (ticket.raw.get("fields") or {}).get("status") or {}
        return (status.get("statusCategory") or {}).get("key") == "done"

    def is_wontfix(self, ticket: Ticket) -> bool:
        resolution = (ticket.raw.get("fields") or {}).get("resolution") or {}
        return (resolution.get("name") or "").lower() in WONTFIX_RESOLUTIONS

    async def _put_fields(self, client: httpx.AsyncClient, ticket_id: str, attrs: TicketAttrs) -> None:
        resp = await client.put(
            f"/rest/api/2/issue/{ticket_id}",
            json={"fields": {"summary": attrs.title, "description": attrs.body}},
        )
        resp.raise_for_status()

    async def _get_issue(self, client: httpx.AsyncClient, issue_key: str) -> Ticket:
        resp = await client.get(
            f"/rest/api/2/issue/{issue_key}",
            params={"fields": ISSUE_FIELDS},
        )
        resp.raise_for_status()
        return self._to_ticket(resp.json())

    def _to_ticket(self, raw: dict) -> Ticket:
        fields = raw.get("fields") or {}
        issue_key = raw.get("key", "")
        site_url = settings.JIRA_SITE_URL.rstrip("/")
        status = fields.get("status") or {}
        category = (status.get("statusCategory") or {}).get("key")

        return Ticket(
            id=issue_key,
            title=fields.get("summary") or "",
            body=fields.get("description") or "",
            url=f"{site_url}/browse/{issue_key}" if issue_key else None,
            state="closed" if category == "done" else "open",
            labels=list(fields.get("labels") or []),
            reporter=(fields.get("reporter") or {}).get("displayName"),
            raw=raw,
        )


def _reopen_transition(transitions: list[dict]) -> dict | None:
    """First transition leading out of the done category."""
    for transition in transitions:
        to = transition.get("to") or {}
        if (to.get("statusCategory") or {}).get("key") != "done":
            return transition
    return None
