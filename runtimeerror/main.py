import structlog
from fastapi import FastAPI

from runtimeerror.accounts import AccountRegistry
from runtimeerror.config import Settings, settings as default_settings
from runtimeerror.core.duplicates import DuplicateCounter
from runtimeerror.core.history import OccurrenceCodec, SparklineChart
from runtimeerror.handler import TicketController
from runtimeerror.inbound.router import router as inbound_router
from runtimeerror.middleware.error_handler import ErrorHandlerMiddleware
from runtimeerror.middleware.logging import RequestLoggingMiddleware
from runtimeerror.notifications import Notifier, mailer_from_settings

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="runtimeerror",
        version="0.1.0",
        docs_url="/docs",
    )

    codec = OccurrenceCodec(SparklineChart(settings.SPARKLINE_URL, settings.SPARKLINE_DAYS))
    app.state.settings = settings
    app.state.registry = AccountRegistry()
    app.state.duplicates = DuplicateCounter()
    app.state.controller = TicketController(
        duplicates=app.state.duplicates,
        codec=codec,
        notifier=Notifier(mailer_from_settings(settings)),
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(inbound_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
