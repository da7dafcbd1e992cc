"""HTTP middleware stack.

Starlette runs middleware in reverse-add order (last added = outermost):

    CORS -> RequestId -> RateLimit -> routes

CORS wraps everything so browsers also see 429s; the request id is bound
before rate limiting so rejected requests are still traceable.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toptsp.config import Settings
from toptsp.middleware.error_handler import setup_error_handlers
from toptsp.middleware.logging import setup_logging
from toptsp.middleware.rate_limit import RateLimitMiddleware
from toptsp.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        # Content-Disposition lets the frontend name the instance download.
        expose_headers=[REQUEST_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Limit", "Content-Disposition"],
    )
