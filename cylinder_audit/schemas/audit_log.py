"""
Pydantic schemas for the audit trail.

AuditLogCreate is what the emitters build; it is never accepted
from HTTP clients. The response schemas describe what the
administrative query surface returns.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cylinder_audit.models.enums import LogType, LogLevel, EmailStatus


# --- Details payloads ---
# One variant per category. Unknown keys are kept so new fields can
# be recorded before the schema learns about them.

class AuditLogDetails(BaseModel):
    model_config = ConfigDict(extra="allow")


class EventDetails(AuditLogDetails):
    """Free-form details for system, security and api events."""


class ActivityDetails(AuditLogDetails):
    """User activity. Settings changes carry the before/after pair."""
    setting_category: str | None = None
    setting_key: str | None = None
    old_value: Any = None
    new_value: Any = None


class AuthDetails(AuditLogDetails):
    email: str | None = None
    login_method: str | None = None
    failed_reason: str | None = None


class EmailDetails(AuditLogDetails):
    recipient: str | None = None
    subject: str | None = None
    status: EmailStatus = EmailStatus.SENT
    error_message: str | None = None


class FileOperationDetails(AuditLogDetails):
    file_name: str
    file_size: int | None = None
    file_type: str | None = None
    file_path: str | None = None


DETAILS_BY_LOG_TYPE: dict[LogType, type[AuditLogDetails]] = {
    LogType.SYSTEM: EventDetails,
    LogType.USER_ACTIVITY: ActivityDetails,
    LogType.EMAIL: EmailDetails,
    LogType.AUTH: AuthDetails,
    LogType.SECURITY: EventDetails,
    LogType.API: EventDetails,
    LogType.FILE_OPERATION: FileOperationDetails,
}


# --- Write Schema ---

class AuditLogCreate(BaseModel):
    """
    A partially populated entry, before enrichment.

    id and created_at are assigned by the writer. Network and
    identity fields may be left empty for the enricher to fill.
    """
    model_config = ConfigDict(frozen=True)

    log_type: LogType
    level: LogLevel = LogLevel.INFO
    action: str = Field(min_length=1, max_length=100)
    message: str | None = None

    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    user_role: str | None = None
    session_id: str | None = None

    ip_address: str | None = None
    user_agent: str | None = None
    request_method: str | None = None
    request_path: str | None = None
    request_headers: dict[str, str] | None = None

    resource_type: str | None = None
    resource_id: str | None = None
    resource_name: str | None = None

    details: AuditLogDetails | None = None

    module: str | None = None
    correlation_id: str | None = None
    tenant_id: str | None = None

    is_sensitive: bool = False
    is_system_generated: bool = False
    retention_days: int | None = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def details_match_log_type(cls, data: Any) -> Any:
        """Validate details against the payload variant for its log_type."""
        if not isinstance(data, dict):
            return data
        details = data.get("details")
        if details is None or "log_type" not in data:
            return data

        log_type = LogType(data["log_type"])
        variant = DETAILS_BY_LOG_TYPE[log_type]
        if isinstance(details, variant):
            return data
        if isinstance(details, BaseModel):
            details = details.model_dump(exclude_none=True)
        return {**data, "details": variant.model_validate(details)}

    def details_dict(self) -> dict | None:
        """Details as stored in the JSON column."""
        if self.details is None:
            return None
        return self.details.model_dump(mode="json", exclude_none=True)


# --- Query Schemas ---

class AuditLogFilters(BaseModel):
    """Filters for the read path. All are optional and AND-combined."""
    log_type: LogType | None = None
    level: LogLevel | None = None
    min_level: LogLevel | None = None
    user_id: str | None = None
    action: str | None = None
    correlation_id: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    include_user_fields: bool = False
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)


# --- Response Schemas ---

class AuditLogResponse(BaseModel):
    """Audit log entry joined with the current user directory."""
    id: uuid.UUID
    created_at: datetime
    log_type: LogType
    level: LogLevel
    action: str
    message: str | None = None

    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    user_role: str | None = None
    session_id: str | None = None

    ip_address: str | None = None
    user_agent: str | None = None
    request_method: str | None = None
    request_path: str | None = None
    request_headers: dict | None = None

    resource_type: str | None = None
    resource_id: str | None = None
    resource_name: str | None = None

    details: dict | None = None

    module: str | None = None
    correlation_id: str | None = None
    tenant_id: str | None = None

    is_sensitive: bool
    is_system_generated: bool
    retention_days: int | None = None

    # From the users table
    username: str | None = None
    user_first_name: str | None = None
    user_last_name: str | None = None
    user_display_name: str | None = None

    model_config = {"from_attributes": True}


class EmailLogResponse(BaseModel):
    """Email events reshaped for the email log screen."""
    id: uuid.UUID
    recipient_email: str
    subject: str
    status: str
    sent_at: datetime
    created_at: datetime
    error_message: str | None = None
    message_id: str | None = None
    provider: str
    user_email: str | None = None
    username: str | None = None
    user_display_name: str | None = None


class AuditLogCount(BaseModel):
    total: int
