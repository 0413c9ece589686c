import json

import httpx
import pytest

from runtimeerror.providers import GitHubProvider, Ticket, TicketAttrs


def issue(number, title, state="open", labels=("runtimeerror",), body="text"):
    return {
        "number": number,
        "title": title,
        "body": body,
        "state": state,
        "html_url": f"https://github.com/octocat/hello/issues/{number}",
        "labels": [{"name": name} for name in labels],
        "user": {"login": "octocat"},
    }


class FakeGitHub:
    def __init__(self, issues=(), emails=()):
        self.issues = list(issues)
        self.emails = list(emails)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path == "/repos/octocat/hello/issues":
            return httpx.Response(200, json=self.issues)
        if request.method == "POST" and path == "/repos/octocat/hello/issues":
            payload = json.loads(request.content)
            return httpx.Response(201, json=issue(7, payload["title"], body=payload["body"], labels=payload["labels"]))
        if request.method == "PATCH" and path.startswith("/repos/octocat/hello/issues/"):
            payload = json.loads(request.content)
            number = int(path.rsplit("/", 1)[1])
            return httpx.Response(
                200, json=issue(number, payload["title"], state=payload.get("state", "open"), body=payload["body"]),
            )
        if request.method == "POST" and path.endswith("/comments"):
            return httpx.Response(201, json={"id": 1})
        if path == "/user/emails":
            return httpx.Response(200, json=self.emails)
        return httpx.Response(404, json={"message": "Not Found"})


def provider(fake, label=None):
    return GitHubProvider("octocat/hello", "t0ken", label=label, transport=httpx.MockTransport(fake))


@pytest.mark.asyncio
async def test_find_matches_generic_title():
    fake = FakeGitHub(issues=[
        issue(1, "Unrelated failure"),
        {**issue(2, "Timeout after 30s"), "pull_request": {}},
        issue(3, "Timeout after 45s", state="closed"),
    ])

    ticket = await provider(fake).find_ticket_by_title("Timeout after {N}s")

    assert ticket.id == "3"
    assert ticket.state == "closed"
    request = fake.requests[0]
    assert request.headers["Authorization"] == "token t0ken"
    assert request.url.params["state"] == "all"
    assert request.url.params["labels"] == "runtimeerror"


@pytest.mark.asyncio
async def test_find_returns_none():
    assert await provider(FakeGitHub()).find_ticket_by_title("anything") is None


@pytest.mark.asyncio
async def test_create_labels_issue():
    fake = FakeGitHub()
    ticket = await provider(fake, label="prod web").create_ticket(TicketAttrs(title="Boom", body="trace"))

    assert ticket.id == "7"
    assert ticket.url == "https://github.com/octocat/hello/issues/7"
    sent = json.loads(fake.requests[0].content)
    assert sent == {"title": "Boom", "body": "trace", "labels": ["runtimeerror", "prod", "web"]}


@pytest.mark.asyncio
async def test_reopen_sets_state_open():
    fake = FakeGitHub()
    ticket = await provider(fake).reopen_ticket("3", TicketAttrs(title="Boom", body="trace"))

    assert ticket.state == "open"
    assert json.loads(fake.requests[0].content)["state"] == "open"
    assert fake.requests[0].url.path == "/repos/octocat/hello/issues/3"


@pytest.mark.asyncio
async def test_update_keeps_state():
    fake = FakeGitHub()
    await provider(fake).update_ticket("3", TicketAttrs(title="Boom", body="trace"))
    assert "state" not in json.loads(fake.requests[0].content)


@pytest.mark.asyncio
async def test_reporter_email_is_primary_verified():
    fake = FakeGitHub(emails=[
        {"email": "old@example.com", "primary": False, "verified": True},
        {"email": "me@example.com", "primary": True, "verified": True},
    ])
    assert await provider(fake).resolve_reporter_email() == "me@example.com"


@pytest.mark.asyncio
async def test_reporter_email_missing():
    fake = FakeGitHub(emails=[{"email": "x@example.com", "primary": True, "verified": False}])
    assert await provider(fake).resolve_reporter_email() is None


@pytest.mark.asyncio
async def test_http_errors_propagate():
    def failing(request):
        return httpx.Response(500, json={"message": "boom"})

    client = GitHubProvider("octocat/hello", "t0ken", transport=httpx.MockTransport(failing))
    with pytest.raises(httpx.HTTPStatusError):
        await client.find_ticket_by_title("x")


def test_status_classification():
    client = GitHubProvider("octocat/hello", "t0ken")
    assert client.is_closed(Ticket(id="1", title="t", state="closed"))
    assert not client.is_closed(Ticket(id="1", title="t", state="open"))
    assert client.is_wontfix(Ticket(id="1", title="t", labels=["runtimeerror", "WontFix"]))
    assert not client.is_wontfix(Ticket(id="1", title="t", labels=["runtimeerror"]))
    assert client.id_for(Ticket(id="42", title="t")) == "42"
