"""Audit trail services."""

from cylinder_audit.services.actions import Actions
from cylinder_audit.services.audit_logger import AuditLogger
from cylinder_audit.services.audit_query import AuditQueryService, AuditQueryError
from cylinder_audit.services.audit_writer import AuditWriter
from cylinder_audit.services.context import (
    ContextEnricher,
    RequestContext,
    SqlUserDirectory,
)
from cylinder_audit.services.correlation import new_correlation_id
from cylinder_audit.services.dispatcher import AuditDispatcher

__all__ = [
    "Actions",
    "AuditLogger",
    "AuditQueryService",
    "AuditQueryError",
    "AuditWriter",
    "AuditDispatcher",
    "ContextEnricher",
    "RequestContext",
    "SqlUserDirectory",
    "new_correlation_id",
]
