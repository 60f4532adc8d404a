"""
Audit query service: the read path over the audit trail.

Every read joins the users table so results carry the actor's
current username and display name, not just the copy captured when
the event was written. Results are always newest first, and page
size is capped so one request cannot pull the whole table.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cylinder_audit.config import Settings, get_settings
from cylinder_audit.models.audit_log import AuditLog
from cylinder_audit.models.enums import LogType, LogLevel
from cylinder_audit.models.user import User
from cylinder_audit.schemas.audit_log import (
    AuditLogFilters,
    AuditLogResponse,
    EmailLogResponse,
)

logger = logging.getLogger(__name__)


class AuditQueryError(RuntimeError):
    """The audit store could not be read."""


def _as_utc_naive(value: datetime) -> datetime:
    # created_at is stored as naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _display_name(log: AuditLog, user: User | None) -> str | None:
    if user is not None:
        return user.full_name or user.username or user.email
    if log.user_id:
        return "Unknown User"
    return None


def _to_response(log: AuditLog, user: User | None) -> AuditLogResponse:
    response = AuditLogResponse.model_validate(log)
    if user is None:
        return response.model_copy(update={
            "user_display_name": _display_name(log, None),
        })
    return response.model_copy(update={
        "user_email": user.email or log.user_email,
        "user_name": log.user_name or user.full_name,
        "user_role": log.user_role or user.role,
        "username": user.username,
        "user_first_name": user.first_name,
        "user_last_name": user.last_name,
        "user_display_name": _display_name(log, user),
    })


class AuditQueryService:
    """
    Filtered, paginated reads of audit log entries.

    search() raises AuditQueryError when the store fails, so the
    admin API can tell "no matches" from "could not look". query()
    is the best-effort variant that returns an empty list instead.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def _conditions(self, filters: AuditLogFilters) -> list:
        conditions = []

        if filters.log_type:
            conditions.append(AuditLog.log_type == filters.log_type)
        if filters.level:
            conditions.append(AuditLog.level == filters.level)
        if filters.min_level:
            conditions.append(AuditLog.level.in_(LogLevel.at_least(filters.min_level)))
        if filters.user_id:
            conditions.append(AuditLog.user_id == filters.user_id)
        if filters.action:
            conditions.append(AuditLog.action == filters.action)
        if filters.correlation_id:
            conditions.append(AuditLog.correlation_id == filters.correlation_id)
        if filters.resource_type:
            conditions.append(AuditLog.resource_type == filters.resource_type)
        if filters.resource_id:
            conditions.append(AuditLog.resource_id == filters.resource_id)
        if filters.start_date:
            conditions.append(AuditLog.created_at >= _as_utc_naive(filters.start_date))
        if filters.end_date:
            conditions.append(AuditLog.created_at <= _as_utc_naive(filters.end_date))

        if filters.search and filters.search.strip():
            pattern = _like_pattern(filters.search.strip())
            columns = [AuditLog.message]
            if filters.include_user_fields:
                columns += [
                    AuditLog.action,
                    AuditLog.user_email,
                    User.username,
                    User.email,
                ]
            conditions.append(or_(*(c.ilike(pattern, escape="\\") for c in columns)))

        return conditions

    def _page(self, filters: AuditLogFilters) -> tuple[int, int]:
        limit = min(filters.limit, self.settings.AUDIT_QUERY_MAX_LIMIT)
        return limit, filters.offset

    def _fetch(self, filters: AuditLogFilters, *extra) -> list[tuple[AuditLog, User | None]]:
        limit, offset = self._page(filters)
        stmt = (
            select(AuditLog, User)
            .outerjoin(User, AuditLog.user_id == User.id)
            .where(*self._conditions(filters), *extra)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        try:
            return [(log, user) for log, user in self.db.execute(stmt)]
        except SQLAlchemyError as e:
            logger.exception("Failed to query audit logs")
            raise AuditQueryError("Audit log store is unavailable") from e

    def search(self, filters: AuditLogFilters) -> list[AuditLogResponse]:
        """Return one page of matching entries, newest first."""
        return [_to_response(log, user) for log, user in self._fetch(filters)]

    def query(self, filters: AuditLogFilters) -> list[AuditLogResponse]:
        """
        Best-effort search.

        Returns an empty list if the store fails. Callers that need
        to tell failure from "nothing matched" should use search().
        """
        try:
            return self.search(filters)
        except AuditQueryError:
            return []

    def unified_logs(self, filters: AuditLogFilters) -> list[AuditLogResponse]:
        """Operator view: free-text search also covers action and user fields."""
        return self.search(filters.model_copy(update={"include_user_fields": True}))

    def count(self, filters: AuditLogFilters) -> int:
        """Total number of entries matching the filters, ignoring paging."""
        stmt = (
            select(func.count(AuditLog.id))
            .select_from(AuditLog)
            .outerjoin(User, AuditLog.user_id == User.id)
            .where(*self._conditions(filters))
        )
        try:
            return self.db.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.exception("Failed to count audit logs")
            raise AuditQueryError("Audit log store is unavailable") from e

    def get(self, log_id: uuid.UUID) -> AuditLogResponse | None:
        """Return a single entry with user info, or None."""
        stmt = (
            select(AuditLog, User)
            .outerjoin(User, AuditLog.user_id == User.id)
            .where(AuditLog.id == log_id)
        )
        try:
            row = self.db.execute(stmt).one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Failed to read audit log %s", log_id)
            raise AuditQueryError("Audit log store is unavailable") from e
        if row is None:
            return None
        return _to_response(*row)

    def email_logs(
        self,
        limit: int = 50,
        offset: int = 0,
        status: str | None = None,
    ) -> list[EmailLogResponse]:
        """
        Email events reshaped for the email log screen.

        Recipient, subject and status come from the details payload
        written by the email emitter, with placeholders when missing.
        """
        filters = AuditLogFilters(log_type=LogType.EMAIL, limit=limit, offset=offset)
        extra = []
        if status:
            extra.append(AuditLog.details["status"].as_string() == status)

        results = []
        for log, user in self._fetch(filters, *extra):
            item = _to_response(log, user)
            details = item.details or {}
            results.append(EmailLogResponse(
                id=item.id,
                recipient_email=details.get("recipient") or "Unknown",
                subject=details.get("subject") or item.message or "No subject",
                status=details.get("status") or "unknown",
                sent_at=item.created_at,
                created_at=item.created_at,
                error_message=details.get("error_message"),
                message_id=details.get("message_id"),
                provider=details.get("provider") or "system",
                user_email=item.user_email,
                username=item.username,
                user_display_name=item.user_display_name,
            ))
        return results
