"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legate.api import activity, collaborators, estate_invites, estates, health, invites
from legate.config import settings
from legate.core.logging import setup_logging
from legate.database.mongo import ensure_indexes, get_database
from legate.middleware.errors import register_exception_handlers
from legate.middleware.rate_limit import create_invite_rate_limiter
from legate.middleware.security_headers import SecurityHeadersMiddleware

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes(get_database())
    except Exception as exc:  # pragma: no cover - best effort at startup
        logger.warning("Skipping index setup: %s", exc)
    yield


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Estate administration API: access control and collaborator invites",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.state.invite_rate_limiter = create_invite_rate_limiter()

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(estates.router, prefix="/api")
app.include_router(estate_invites.router, prefix="/api")
app.include_router(invites.router, prefix="/api")
app.include_router(collaborators.router, prefix="/api")
app.include_router(activity.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("legate.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
