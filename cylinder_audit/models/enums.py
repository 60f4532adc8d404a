"""
Shared enumerations for the audit trail.

log_type and level are closed sets. They are mapped to database
enums with a CHECK constraint, so an unknown category or severity
is rejected by the database as well as by pydantic.
"""

import enum


class LogType(str, enum.Enum):
    """Category of an audit event. Fixed when the entry is created."""
    SYSTEM = "system"
    USER_ACTIVITY = "user_activity"
    EMAIL = "email"
    AUTH = "auth"
    SECURITY = "security"
    API = "api"
    FILE_OPERATION = "file_operation"


class LogLevel(str, enum.Enum):
    """Severity, ordered from least to most severe."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __lt__(self, other):
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other):
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other):
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other):
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity >= other.severity

    @classmethod
    def at_least(cls, minimum: "LogLevel") -> list["LogLevel"]:
        """All levels at or above the given severity."""
        return [level for level in cls if level >= minimum]


_SEVERITY = {level: rank for rank, level in enumerate(LogLevel)}


class EmailStatus(str, enum.Enum):
    """Delivery outcome recorded on email events."""
    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"
