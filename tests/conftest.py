from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from runtimeerror.accounts import AccountRegistry
from runtimeerror.config import DEFAULT_SPARKLINE_URL
from runtimeerror.core.duplicates import DuplicateCounter
from runtimeerror.core.history import OccurrenceCodec, SparklineChart
from runtimeerror.handler import TicketController
from runtimeerror.main import create_app
from runtimeerror.notifications import Mailer, Notifier

TODAY = date(2026, 1, 5)
YESTERDAY = TODAY - timedelta(days=1)


class RecordingMailer(Mailer):
    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_message(self, to, subject, body, headers=None):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({"to": to, "subject": subject, "body": body, "headers": headers or {}})


@pytest.fixture
def codec():
    return OccurrenceCodec(SparklineChart(DEFAULT_SPARKLINE_URL, 7))


@pytest.fixture
def registry():
    return AccountRegistry()


@pytest.fixture
def duplicates():
    return DuplicateCounter()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def controller(duplicates, codec, mailer):
    return TicketController(duplicates, codec, Notifier(mailer), today=lambda: TODAY)


@pytest.fixture
def account(registry):
    return registry.find_or_create("repoA", "secretB", "none")


@pytest_asyncio.fixture
async def app(controller, registry, duplicates):
    app = create_app()
    app.state.registry = registry
    app.state.duplicates = duplicates
    app.state.controller = controller
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
