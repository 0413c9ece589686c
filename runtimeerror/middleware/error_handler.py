import httpx
import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn tracker failures into 502 and anything else into 500."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except httpx.HTTPStatusError as exc:
            logger.error(
                "tracker_request_failed",
                path=request.url.path,
                tracker_url=str(exc.request.url),
                tracker_status=exc.response.status_code,
            )
            return JSONResponse(status_code=502, content={"detail": "Issue tracker rejected the request"})
        except httpx.HTTPError as exc:
            logger.error("tracker_unreachable", path=request.url.path, error=str(exc))
            return JSONResponse(status_code=502, content={"detail": "Issue tracker unreachable"})
        except Exception as exc:
            logger.error("unhandled_error", path=request.url.path, error=str(exc))
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
