import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from alembic import command
from alembic.config import Config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from src.admin.router import router as admin_router
from src.config.logging import setup_logging
from src.config.settings import settings
from src.dependencies import get_submission_pipeline
from src.guests.routers import router as guests_router
from src.routers.healthz.router import router as healthz_router
from src.rsvp.pipeline import run_pending_sync
from src.rsvp.routers import router as rsvp_router

setup_logging()
logger = logging.getLogger(__name__)


async def run_migrations():
    alembic_cfg = Config("alembic.ini")
    await asyncio.to_thread(command.upgrade, alembic_cfg, "head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await run_migrations()

    sync_task = None
    if settings.pending_sync_interval_seconds > 0:
        sync_task = asyncio.create_task(
            run_pending_sync(get_submission_pipeline(), settings.pending_sync_interval_seconds)
        )
        logger.info(
            f"Pending RSVP sync every {settings.pending_sync_interval_seconds}s "
            f"against the {settings.rsvp_backend} backend"
        )
    yield
    if sync_task is not None:
        sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sync_task


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )

app = FastAPI(
    title="Wedding RSVP API",
    description="API for personal RSVP links, guest responses and organizer tools",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(healthz_router, prefix="/healthz", tags=["Healthz"])
app.include_router(rsvp_router, tags=["RSVP"])
app.include_router(guests_router, tags=["Guests"])
app.include_router(admin_router, tags=["Admin"])


@app.get("/", tags=["Root"])
async def root():
    return {"message": "Welcome to the Wedding RSVP API"}
