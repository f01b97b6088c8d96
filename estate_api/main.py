from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.csrf import create_csrf_middleware
from .core.logging import init_logging, request_context_middleware
from .core.rate_limit import FixedWindowRateLimiter, create_rate_limit_middleware
from .core import errors
from .routers import csrf, health, rates
from .services.rates.cache_service import ExchangeRateService, build_rate_service


def create_app(
    settings_override: Settings | None = None,
    rate_service: ExchangeRateService | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    rate_service: inject a pre-built service (e.g. with a stubbed transport);
    otherwise one is built from settings. Either way it is owned by this app.
    """
    settings = settings_override or get_settings()
    # Initialize logging early
    init_logging(debug=settings.debug)

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.rate_service = rate_service or build_rate_service(settings)

    # Middleware: the last one added runs first
    app.middleware("http")(create_csrf_middleware(settings))
    if settings.rate_limit_enabled:
        limiter = FixedWindowRateLimiter(
            settings.rate_limit_max_requests, settings.rate_limit_window_seconds
        )
        app.state.rate_limiter = limiter
        app.middleware("http")(create_rate_limit_middleware(limiter))
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(csrf.router)
    app.include_router(rates.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "estate_api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )
