"""
Audit writer: appends one entry to the audit trail.

Writing is best-effort. The event being recorded has already
happened (a login, an upload, a settings change); failing to record
it must never undo or fail that operation. So write() never raises:
a failure is reported on the operational logger and the caller gets
None instead of an id. Failed writes are not retried.
"""

import logging
import uuid
from typing import Callable

from sqlalchemy.orm import Session

from cylinder_audit.models.audit_log import AuditLog, utc_now
from cylinder_audit.schemas.audit_log import AuditLogCreate
from cylinder_audit.services.context import ContextEnricher, RequestContext

logger = logging.getLogger(__name__)


class AuditWriter:
    """
    The only code that inserts into audit_logs.

    The writer takes a session factory rather than a session.
    Each write runs in its own short transaction, so an audit
    insert can neither be rolled back by the caller's business
    transaction nor roll it back.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        enricher: ContextEnricher | None = None,
    ):
        self.session_factory = session_factory
        self.enricher = enricher or ContextEnricher()

    def write(
        self, entry: AuditLogCreate, context: RequestContext | None = None
    ) -> str | None:
        """
        Enrich and persist an entry.

        Returns the new entry's id, or None if it could not be stored.
        """
        try:
            values = entry.model_dump(exclude={"details"})
            values["details"] = entry.details_dict()
            values = self.enricher.enrich(values, context)

            log_id = uuid.uuid4()
            log = AuditLog(id=log_id, created_at=utc_now(), **values)

            with self.session_factory() as db:
                try:
                    db.add(log)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
        except Exception:
            logger.exception(
                "Failed to write audit log (type=%s action=%s)",
                entry.log_type.value,
                entry.action,
            )
            return None

        return str(log_id)
