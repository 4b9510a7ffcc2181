import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from docvault.core.config import settings
from docvault.core.database import (
    close_database_connection,
    create_database_engine,
    create_sessionmaker,
)
from docvault.events import OutboxDispatcher, build_default_handlers
from docvault.models import Base
from docvault.services import BootstrapService

logger = logging.getLogger(__name__)


# ============================================================================
# Lifespan Context Manager
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Database engine creation and storage in app.state
    - Session factory creation
    - Optional schema creation and reference data seeding
    - Outbox dispatcher start and stop
    - Resource cleanup on shutdown
    """
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info(f"Environment: {settings.environment}")

    engine = create_database_engine()
    app.state.sessionmaker = create_sessionmaker(engine)
    logger.info("Sessionmaker created successfully")

    if settings.bootstrap_on_startup:
        # Migrations own the schema outside of development
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with app.state.sessionmaker() as session:
            await BootstrapService(session).ensure_defaults()
        logger.info("Schema created and reference data seeded")

    app.state.dispatcher = None
    if settings.outbox_dispatcher_enabled:
        app.state.dispatcher = OutboxDispatcher(app.state.sessionmaker, build_default_handlers())
        app.state.dispatcher.start()

    yield

    # Cleanup on shutdown
    logger.info("Shutting down application")
    if app.state.dispatcher is not None:
        await app.state.dispatcher.stop()
        app.state.dispatcher = None
    await close_database_connection(engine)
    app.state.sessionmaker = None
