import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from .logging_utils import log_api_request
from .metrics import http_request_duration


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log every HTTP request and record its duration.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler in the chain
    """
    start_time = time.perf_counter()

    response = await call_next(request)

    elapsed = time.perf_counter() - start_time
    http_request_duration.record(
        elapsed,
        {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
        },
    )
    log_api_request(
        request=request,
        response_status=response.status_code,
        process_time_ms=elapsed * 1000,
    )

    return response
