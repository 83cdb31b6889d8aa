"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers exception handlers and includes all API routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buildtrack_auth.auth import TokenManager
from buildtrack_auth.core.database import async_session_maker, init_db
from buildtrack_auth.core.database.repositories import build_auth_repos
from buildtrack_auth.core.logging_config import get_logger, setup_logging
from buildtrack_auth.core.monitoring import initialize_logfire

from .api.v1 import auth, health, secrets, sessions
from .core import constant
from .core.config import get_settings, reload_settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware
from .services.secrets_manager import get_secrets_manager

# Initialize logging
setup_logging()
logger = get_logger(__name__)


async def purge_expired_sessions() -> int:
    """Delete sessions whose refresh token has expired."""
    async with async_session_maker() as session:
        return await TokenManager(build_auth_repos(session)).cleanup_expired_sessions()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Startup provisions missing secrets, reloads settings so the provisioned
    values take effect (warning when a secret still holds its development
    default), creates missing tables and purges expired sessions.
    Each step logs its failure instead of aborting startup.
    """
    logger.info("Starting up BuildTrack Auth Server...")

    if get_settings().auto_init_secrets:
        try:
            if get_secrets_manager().initialize_secrets():
                logger.info("Secrets initialized successfully")
            else:
                logger.error("Some required secrets could not be provisioned")
        except Exception as e:
            logger.error(f"Secrets initialization failed: {e}", exc_info=True)
    insecure = reload_settings().default_secret_names()
    if insecure:
        logger.warning(
            f"Using built-in development values for {', '.join(insecure)}; configure real secrets before deploying"
        )

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    try:
        purged = await purge_expired_sessions()
        logger.info(f"Purged {purged} expired session(s) on startup")
    except Exception as e:
        logger.error(f"Expired session cleanup failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down BuildTrack Auth Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    BuildTrack Auth Server API

    Authentication and session management for the construction project management
    application: registration, login with TOTP two-factor authentication, JWT
    access/refresh token rotation and session revocation.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = get_settings().cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(sessions.router, prefix=f"{constant.API_V1_STR}/sessions")
app.include_router(secrets.router, prefix=f"{constant.API_V1_STR}/secrets")
