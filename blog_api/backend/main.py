# blog_api/backend/main.py
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blog_api.backend.core.config import settings
from blog_api.backend.core.errors import register_error_handlers
from blog_api.backend.core.logging_config import setup_logging

# import models so SQLModel metadata knows every table
import blog_api.db.base  # noqa: F401

from blog_api.backend.routers import auth, health
from blog_api.backend.services.token_sweep import sweep_loop

setup_logging(settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweep_task: asyncio.Task | None = None
    if settings.refresh_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(sweep_loop(settings.refresh_sweep_interval_seconds))
        logger.info(
            "refresh token sweep every %ss", settings.refresh_sweep_interval_seconds
        )
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task


app = FastAPI(
    title="Blog API",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS (credentials on: the refresh token travels as a cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# routers
app.include_router(health.router)
app.include_router(auth.auth_router)
