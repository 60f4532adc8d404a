"""
Audit log API endpoints.

The administrative read surface over the audit trail. There are no
write endpoints: entries are only created through the emitters in
AuditLogger, never posted by HTTP clients.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cylinder_audit.models.base import get_db
from cylinder_audit.models.enums import LogType, LogLevel, EmailStatus
from cylinder_audit.services.audit_query import AuditQueryService, AuditQueryError
from cylinder_audit.schemas.audit_log import (
    AuditLogFilters,
    AuditLogResponse,
    AuditLogCount,
    EmailLogResponse,
)

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


def get_filters(
    log_type: LogType | None = None,
    level: LogLevel | None = None,
    min_level: LogLevel | None = Query(None, description="Only this level and above"),
    user_id: str | None = None,
    action: str | None = None,
    correlation_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    start_date: datetime | None = Query(None, description="ISO date-time"),
    end_date: datetime | None = Query(None, description="ISO date-time"),
    search: str | None = Query(None, max_length=200),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> AuditLogFilters:
    return AuditLogFilters(
        log_type=log_type,
        level=level,
        min_level=min_level,
        user_id=user_id,
        action=action,
        correlation_id=correlation_id,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        limit=limit,
        offset=offset,
    )


def _unavailable(e: AuditQueryError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(
    filters: AuditLogFilters = Depends(get_filters),
    db: Session = Depends(get_db),
):
    """
    List audit log entries, newest first.

    Free-text search matches the message, action, username
    and user email.
    """
    service = AuditQueryService(db)
    try:
        return service.unified_logs(filters)
    except AuditQueryError as e:
        raise _unavailable(e)


@router.get("/count", response_model=AuditLogCount)
def count_audit_logs(
    filters: AuditLogFilters = Depends(get_filters),
    db: Session = Depends(get_db),
):
    """Count entries matching the same filters as the list endpoint."""
    service = AuditQueryService(db)
    try:
        total = service.count(filters.model_copy(update={"include_user_fields": True}))
    except AuditQueryError as e:
        raise _unavailable(e)
    return AuditLogCount(total=total)


@router.get("/email", response_model=list[EmailLogResponse])
def list_email_logs(
    status: EmailStatus | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Email delivery log, newest first."""
    service = AuditQueryService(db)
    try:
        return service.email_logs(
            limit=limit,
            offset=offset,
            status=status.value if status else None,
        )
    except AuditQueryError as e:
        raise _unavailable(e)


@router.get("/{log_id}", response_model=AuditLogResponse)
def get_audit_log(
    log_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    """Get a single audit log entry."""
    service = AuditQueryService(db)
    try:
        entry = service.get(log_id)
    except AuditQueryError as e:
        raise _unavailable(e)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Audit log {log_id} not found")
    return entry
