"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from tavern.api.adventurers import router as adventurers_router
from tavern.api.auth import router as auth_router
from tavern.api.errors import register_exception_handlers
from tavern.api.health import router as health_router
from tavern.api.notifications import router as notifications_router
from tavern.api.npc_organizations import router as npc_organizations_router
from tavern.api.quests import completion_router as quest_completion_router
from tavern.api.quests import router as quests_router
from tavern.api.realtime import router as realtime_router
from tavern.config import settings
from tavern.core import __version__
from tavern.core.logging import get_logger, setup_logging
from tavern.db.database import engine as db_engine
from tavern.db.models import Base
from tavern.services.notification_hub import NotificationHub

setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    yield

    logger.info("Shutting down...")
    db_engine.dispose()


app = FastAPI(title="Tavern", version=__version__, lifespan=lifespan)
# sockets may connect before the first request, so the hub lives outside lifespan
app.state.notification_hub = NotificationHub()

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(adventurers_router)
app.include_router(npc_organizations_router)
app.include_router(quests_router)
app.include_router(quest_completion_router)
app.include_router(notifications_router)
app.include_router(realtime_router)
