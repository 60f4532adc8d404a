"""
Audit logger: the domain emitters.

Collaborators never build an audit entry by hand. They call the one
method matching the kind of event (auth, email, file, settings, ...)
with the parameters that make sense for it. Each method:
1. Fixes the log_type for its category
2. Applies the category's default level and flags
3. Assembles the category's details payload
4. Captures the request context, if a request was given
5. Hands the entry to the dispatcher, or writes it inline

Invalid levels raise ValueError here, at the emitter, so a bad call
is caught where it is made. Anything else wrong with an entry (a
malformed payload, an over-long action) is reported on the
operational logger and the event is skipped. Storage failures never
surface either: the writer reports them the same way.
"""

import json
import logging
import threading
from typing import Any

from pydantic import ValidationError

from cylinder_audit.config import Settings, get_settings
from cylinder_audit.models.enums import LogType, LogLevel, EmailStatus
from cylinder_audit.schemas.audit_log import AuditLogCreate, ActivityDetails, AuthDetails
from cylinder_audit.services.actions import Actions
from cylinder_audit.services.audit_writer import AuditWriter
from cylinder_audit.services.context import RequestContext
from cylinder_audit.services.dispatcher import AuditDispatcher

logger = logging.getLogger(__name__)

# Identifiers callers commonly hold as UUIDs or ints
ID_FIELDS = ("user_id", "resource_id", "session_id", "correlation_id", "tenant_id")


def _level(value: LogLevel | str | None, default: LogLevel) -> LogLevel:
    if value is None:
        return default
    try:
        return LogLevel(value)
    except ValueError:
        raise ValueError(f"Unknown log level: {value!r}") from None


def _as_setting_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _detail(details: Any, key: str) -> Any:
    if details is None:
        return None
    if isinstance(details, dict):
        return details.get(key)
    return getattr(details, key, None)


class AuditLogger:
    """
    Entry point for recording audit events.

    With a dispatcher, every method returns None immediately and
    the write happens in the background. Without one, the write
    happens inline and the method returns the new id (or None if
    the entry was rejected or the write failed).
    """

    def __init__(
        self,
        writer: AuditWriter,
        dispatcher: AuditDispatcher | None = None,
        settings: Settings | None = None,
    ):
        self.writer = writer
        self.dispatcher = dispatcher
        self.settings = settings or get_settings()
        self._known_actions = Actions.all()
        self._reported_actions: set[str] = set()
        self._lock = threading.Lock()

    def _check_action(self, action: Any) -> None:
        # Unregistered actions are still written; each is reported once.
        if not isinstance(action, str) or action in self._known_actions:
            return
        with self._lock:
            if action in self._reported_actions:
                return
            self._reported_actions.add(action)
        logger.warning("Audit action %r is not registered in Actions", action)

    def _emit(self, request: Any | None, **fields) -> str | None:
        if fields.get("is_sensitive"):
            fields.setdefault("retention_days", self.settings.AUDIT_SENSITIVE_RETENTION_DAYS)
        else:
            fields.setdefault("retention_days", self.settings.AUDIT_RETENTION_DAYS)

        for name in ID_FIELDS:
            value = fields.get(name)
            if value is not None and not isinstance(value, str):
                fields[name] = str(value)

        self._check_action(fields.get("action"))

        try:
            entry = AuditLogCreate(**fields)
        except ValidationError as e:
            logger.error(
                "Rejected audit log (type=%s action=%s): %s",
                fields["log_type"].value,
                fields.get("action"),
                e,
            )
            return None

        context = RequestContext.from_request(request)

        if self.dispatcher is not None:
            self.dispatcher.submit(entry, context)
            return None
        return self.writer.write(entry, context)

    # --- Emitters ---

    def log_user_activity(
        self,
        user_id: Any,
        action: str,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: Any | None = None,
        resource_name: str | None = None,
        details: dict | ActivityDetails | None = None,
        level: LogLevel | str | None = None,
        user_email: str | None = None,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record something a signed-in user did."""
        return self._emit(
            request,
            log_type=LogType.USER_ACTIVITY,
            level=_level(level, LogLevel.INFO),
            action=action,
            message=message,
            user_id=user_id,
            user_email=user_email,
            resource_type=resource_type,
            resource_id=resource_id,
            resource_name=resource_name,
            details=details or None,
            correlation_id=correlation_id,
            is_system_generated=False,
        )

    def log_system_event(
        self,
        level: LogLevel | str,
        message: str,
        *,
        action: str = Actions.SYSTEM_EVENT,
        module: str | None = None,
        details: dict | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record an automated event. System events have no actor."""
        return self._emit(
            None,
            log_type=LogType.SYSTEM,
            level=_level(level, LogLevel.INFO),
            action=action,
            message=message,
            module=module,
            details=details or None,
            correlation_id=correlation_id,
            is_system_generated=True,
        )

    def log_auth_event(
        self,
        action: str,
        message: str,
        *,
        user_id: Any | None = None,
        details: dict | AuthDetails | None = None,
        level: LogLevel | str | None = None,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """
        Record a login, logout, failed login or password event.

        Failed logins (LOGIN_FAILED, or details carrying a
        failed_reason) default to WARNING.
        """
        failed = action == Actions.LOGIN_FAILED or bool(_detail(details, "failed_reason"))
        return self._emit(
            request,
            log_type=LogType.AUTH,
            level=_level(level, LogLevel.WARNING if failed else LogLevel.INFO),
            action=action,
            message=message,
            user_id=user_id,
            resource_type="auth",
            details=details or None,
            correlation_id=correlation_id,
            is_system_generated=False,
        )

    def log_email_event(
        self,
        action: str,
        message: str,
        *,
        recipient: str | None = None,
        subject: str | None = None,
        status: EmailStatus | str = EmailStatus.SENT,
        error_message: str | None = None,
        user_id: Any | None = None,
        details: dict | None = None,
        level: LogLevel | str | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record an outgoing email. Failed deliveries default to ERROR."""
        payload = {
            "recipient": recipient,
            "subject": subject,
            "status": status,
            "error_message": error_message,
            **(details or {}),
        }
        default_level = LogLevel.ERROR if status == EmailStatus.FAILED else LogLevel.INFO
        return self._emit(
            None,
            log_type=LogType.EMAIL,
            level=_level(level, default_level),
            action=action,
            message=message,
            user_id=user_id,
            resource_type="email",
            details=payload,
            correlation_id=correlation_id,
            is_system_generated=False,
        )

    def log_file_operation(
        self,
        user_id: Any,
        action: str,
        file_name: str,
        *,
        file_size: int | None = None,
        file_type: str | None = None,
        file_path: str | None = None,
        details: dict | None = None,
        level: LogLevel | str | None = None,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record an upload, download or delete of a stored file."""
        payload = {
            "file_name": file_name,
            "file_size": file_size,
            "file_type": file_type,
            "file_path": file_path,
            **(details or {}),
        }
        return self._emit(
            request,
            log_type=LogType.FILE_OPERATION,
            level=_level(level, LogLevel.INFO),
            action=action,
            message=f"File {action}: {file_name}",
            user_id=user_id,
            resource_type="file",
            resource_id=file_path,
            resource_name=file_name,
            details=payload,
            correlation_id=correlation_id,
            is_system_generated=False,
        )

    def log_settings_update(
        self,
        user_id: Any,
        user_email: str | None,
        category: str,
        key: str,
        old_value: Any,
        new_value: Any,
        *,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """
        Record an application setting change with its before/after values.

        Non-string values are stored as JSON text so the pair is always
        comparable.
        """
        details = ActivityDetails(
            setting_category=category,
            setting_key=key,
            old_value=_as_setting_value(old_value),
            new_value=_as_setting_value(new_value),
        )
        return self.log_user_activity(
            user_id,
            Actions.SETTINGS_UPDATE,
            f"Updated setting {category}.{key}",
            resource_type="app_settings",
            resource_id=f"{category}.{key}",
            resource_name=f"{category} - {key}",
            details=details,
            user_email=user_email,
            request=request,
            correlation_id=correlation_id,
        )

    def log_security_event(
        self,
        level: LogLevel | str,
        action: str,
        message: str,
        *,
        user_id: Any | None = None,
        details: dict | None = None,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record a security-relevant event. Always marked sensitive."""
        return self._emit(
            request,
            log_type=LogType.SECURITY,
            level=_level(level, LogLevel.WARNING),
            action=action,
            message=message,
            user_id=user_id,
            details=details or None,
            correlation_id=correlation_id,
            is_system_generated=False,
            is_sensitive=True,
        )

    def log_api_event(
        self,
        action: str,
        message: str,
        *,
        user_id: Any | None = None,
        details: dict | None = None,
        level: LogLevel | str | None = None,
        request: Any | None = None,
        correlation_id: str | None = None,
    ) -> str | None:
        """Record a call made through the public API."""
        return self._emit(
            request,
            log_type=LogType.API,
            level=_level(level, LogLevel.INFO),
            action=action,
            message=message,
            user_id=user_id,
            details=details or None,
            correlation_id=correlation_id,
            is_system_generated=False,
        )
