import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

QUIET_PATHS = ("/health", "/metrics")


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Per-request debug logging with the elapsed time echoed in ``X-Response-Time``.

    Probe endpoints are passed through without logging.
    """

    def __init__(self, app, logger_name: str = "devevent.http", quiet_paths=QUIET_PATHS):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)
        self._quiet = tuple(quiet_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(self._quiet):
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            self._logger.warning("%s %s failed after %.1fms: %r",
                                 request.method, path, _elapsed_ms(started), e)
            raise

        elapsed = _elapsed_ms(started)
        response.headers["X-Response-Time"] = f"{elapsed:.1f}ms"
        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        self._logger.log(level, "%s %s -> %d (%.1fms)",
                         request.method, path, response.status_code, elapsed)
        return response


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
