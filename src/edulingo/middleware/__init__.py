"""Middleware registration."""

from fastapi import FastAPI

from edulingo.config import Settings
from edulingo.middleware.cors import setup_cors
from edulingo.middleware.error_handler import setup_error_handlers
from edulingo.middleware.logging import setup_logging
from edulingo.middleware.rate_limit import RateLimitMiddleware
from edulingo.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS is added last so it also wraps the 429 responses of the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
