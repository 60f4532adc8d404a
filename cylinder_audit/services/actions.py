"""
Shared action names.

action is free-form on purpose: collaborators add new verbs as the
application grows. Use these constants where one exists so the
same event is always spelled the same way in the audit trail.
"""


class Actions:
    # Authentication
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAILED = "LOGIN_FAILED"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PASSWORD_RESET = "PASSWORD_RESET"

    # User management
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_ACTIVATE = "USER_ACTIVATE"
    USER_DEACTIVATE = "USER_DEACTIVATE"
    PROFILE_UPDATE = "PROFILE_UPDATE"

    # Settings
    SETTINGS_UPDATE = "SETTINGS_UPDATE"
    BRANDING_UPDATE = "BRANDING_UPDATE"

    # Files
    FILE_UPLOAD = "FILE_UPLOAD"
    FILE_DELETE = "FILE_DELETE"
    FILE_DOWNLOAD = "FILE_DOWNLOAD"

    # Test certificates
    REPORT_CREATE = "REPORT_CREATE"
    REPORT_UPDATE = "REPORT_UPDATE"
    REPORT_DELETE = "REPORT_DELETE"
    REPORT_SUBMIT = "REPORT_SUBMIT"
    REPORT_APPROVE = "REPORT_APPROVE"

    # Email
    EMAIL_SENT = "EMAIL_SENT"
    EMAIL_FAILED = "EMAIL_FAILED"

    # System
    SYSTEM_EVENT = "SYSTEM_EVENT"
    SYSTEM_STARTUP = "SYSTEM_STARTUP"
    SYSTEM_SHUTDOWN = "SYSTEM_SHUTDOWN"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    DATABASE_BACKUP = "DATABASE_BACKUP"
    MAINTENANCE_START = "MAINTENANCE_START"
    MAINTENANCE_END = "MAINTENANCE_END"

    # Security
    PERMISSION_DENIED = "PERMISSION_DENIED"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"

    # API
    API_REQUEST = "API_REQUEST"

    @classmethod
    def all(cls) -> set[str]:
        return {
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        }
