"""
Audit log model.

One table holds every event the application records: logins,
settings changes, uploads, emails, security and system events.
Heterogeneous payloads live in the details JSON column; everything
that is filtered on has its own column.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Boolean, Integer, DateTime, JSON, Index,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from cylinder_audit.models.base import Base
from cylinder_audit.models.enums import LogType, LogLevel


def utc_now() -> datetime:
    """Current time as naive UTC, the form created_at is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AuditLog(Base):
    """
    Immutable record of something that happened.

    Audit logs are append-only. Nothing in this service
    updates or deletes a row once it is written.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_type_level_created", "log_type", "level", "created_at"),
        Index("ix_audit_logs_user_action_created", "user_id", "action", "created_at"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, index=True
    )

    # --- Classification ---
    log_type: Mapped[LogType] = mapped_column(
        SAEnum(
            LogType,
            name="audit_log_type_enum",
            create_constraint=True,
            values_callable=_enum_values,
        ),
        nullable=False,
        index=True,
    )
    level: Mapped[LogLevel] = mapped_column(
        SAEnum(
            LogLevel,
            name="audit_log_level_enum",
            create_constraint=True,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=LogLevel.INFO,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Actor ---
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    session_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Network ---
    ip_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    request_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_headers: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # --- Resource ---
    resource_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    resource_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Payload and metadata ---
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    module: Mapped[str | None] = mapped_column(String(100), nullable=True)
    correlation_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # --- Flags ---
    is_sensitive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_system_generated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    retention_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.log_type.value}/{self.level.value} "
            f"{self.action} at {self.created_at}>"
        )
