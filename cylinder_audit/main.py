"""
Cylinder Audit Service: FastAPI Application.

This is the entry point for the application.
The audit stack is built here, once, and shared through app.state.
All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cylinder_audit.config import get_settings
from cylinder_audit.api.audit_logs import router as audit_logs_router
from cylinder_audit.api.health import router as health_router
from cylinder_audit.api.middleware import CorrelationIdMiddleware
from cylinder_audit.models.base import SessionLocal
from cylinder_audit.models.enums import LogLevel
from cylinder_audit.services.actions import Actions
from cylinder_audit.services.audit_logger import AuditLogger
from cylinder_audit.services.audit_writer import AuditWriter
from cylinder_audit.services.context import ContextEnricher, SqlUserDirectory
from cylinder_audit.services.dispatcher import AuditDispatcher

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


def build_audit_logger() -> tuple[AuditLogger, AuditDispatcher | None]:
    """Wire the writer, dispatcher and emitters against the configured database."""
    enricher = ContextEnricher(user_directory=SqlUserDirectory(SessionLocal))
    writer = AuditWriter(SessionLocal, enricher)
    dispatcher = None
    if settings.AUDIT_ASYNC_WRITES:
        dispatcher = AuditDispatcher(writer, max_size=settings.AUDIT_QUEUE_MAX_SIZE)
    return AuditLogger(writer, dispatcher, settings), dispatcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    audit_logger, dispatcher = build_audit_logger()
    if dispatcher is not None:
        dispatcher.start()
    app.state.audit_logger = audit_logger
    app.state.audit_dispatcher = dispatcher

    audit_logger.log_system_event(
        LogLevel.INFO,
        f"{settings.APP_NAME} {settings.APP_VERSION} started",
        action=Actions.SYSTEM_STARTUP,
        module="main",
    )
    yield
    audit_logger.log_system_event(
        LogLevel.INFO,
        f"{settings.APP_NAME} shutting down",
        action=Actions.SYSTEM_SHUTDOWN,
        module="main",
    )
    if dispatcher is not None:
        dispatcher.stop()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Unified audit trail for the cylinder test certificate application",
    lifespan=lifespan,
)

app.add_middleware(CorrelationIdMiddleware)

# Register routers
app.include_router(health_router)
app.include_router(audit_logs_router)
