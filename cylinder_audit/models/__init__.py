"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from cylinder_audit.models.base import Base
from cylinder_audit.models.enums import LogType, LogLevel, EmailStatus
from cylinder_audit.models.audit_log import AuditLog
from cylinder_audit.models.user import User

__all__ = [
    "Base",
    "LogType",
    "LogLevel",
    "EmailStatus",
    "AuditLog",
    "User",
]
