"""
Health check endpoint.

Used by load balancers, monitoring systems, and humans
to verify the service is running and can reach the audit store.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from cylinder_audit.models.base import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Return service health, database connectivity and the
    state of the background audit dispatcher.

    An unreachable database means audit events are being
    dropped, so the service reports itself degraded.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_status = "unhealthy"

    dispatcher = getattr(request.app.state, "audit_dispatcher", None)
    if dispatcher is None:
        dispatcher_status = "disabled"
    else:
        dispatcher_status = "running" if dispatcher.running else "stopped"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "cylinder-audit-service",
        "database": db_status,
        "audit_dispatcher": dispatcher_status,
    }
