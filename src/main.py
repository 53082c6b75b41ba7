"""Main FastAPI application entry point."""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Shared household budgets\n\n"
            "Budget groups let a household share transactions and budgets. "
            "Members hold a role (owner, admin, member, viewer) that decides "
            "what they may change, and an optional family role label.\n\n"
            "### Features\n"
            "- **Groups & members**: create groups, manage roles\n"
            "- **Invitations**: invite by email, accept or reject by token\n"
            "- **Shared records**: group transactions and budgets\n"
            "- **Activity feed**: who changed what, newest first\n"
            "- **Aggregates**: budget progress and income/expense summary\n\n"
            "### Authentication\n"
            "All endpoints except `/health` and invitation lookup require a "
            "valid JWT in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Errors\n"
            "Errors use one envelope: `error_code`, `kind`, `message`, `details`."
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "groups", "description": "Budget group management"},
            {"name": "members", "description": "Group membership and roles"},
            {"name": "invitations", "description": "Invitation lifecycle"},
            {"name": "activity", "description": "Group activity feed"},
            {"name": "transactions", "description": "Shared group transactions"},
            {"name": "budgets", "description": "Shared group budgets and progress"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    logger.info("app_created", environment=settings.app_env)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
