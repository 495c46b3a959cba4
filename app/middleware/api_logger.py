import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("app.api")


class APILoggerMiddleware(BaseHTTPMiddleware):
    """Log one line per request: method, path, status and duration.

    Bodies are never read here; prompts and answers stay out of the logs
    and streamed CSV exports pass through untouched.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"❌ {request.method} {request.url.path} failed [{request_id}]")
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({process_time:.1f} ms) [{request_id}]"
        )
        response.headers["X-Request-ID"] = request_id
        return response
