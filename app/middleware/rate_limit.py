import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.prometheus_metrics import rate_limit_exceeded_total

logger = logging.getLogger(__name__)

PAYMENT_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    # storage_uri="redis://localhost:6379", # shared storage once there is more than one worker
)


def custom_rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    rate_limit_exceeded_total.labels(endpoint=request.url.path).inc()
    logger.warning(f"Rate limit exceeded on {request.url.path} ({exc.detail})")

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please try again later.",
            "limit": str(exc.detail),
        },
    )
