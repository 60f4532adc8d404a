"""Bounded background delivery of audit events to the writer."""

import logging
import queue
import threading
import time

from cylinder_audit.schemas.audit_log import AuditLogCreate
from cylinder_audit.services.audit_writer import AuditWriter
from cylinder_audit.services.context import RequestContext

logger = logging.getLogger(__name__)

_STOP = object()


class AuditDispatcher:
    """
    Hands audit events to a single worker thread.

    submit() never blocks the caller. The queue is bounded so a
    burst of events cannot pile up without limit; when it is full
    the event is dropped and a warning is logged.
    """

    def __init__(self, writer: AuditWriter, max_size: int = 1000):
        self.writer = writer
        self.max_size = max_size
        self._queue: queue.Queue = queue.Queue(maxsize=max_size)
        self._thread: threading.Thread | None = None
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run, name="audit-dispatcher", daemon=True
        )
        self._thread.start()
        logger.debug("Audit dispatcher started (max_size=%d)", self.max_size)

    def submit(
        self, entry: AuditLogCreate, context: RequestContext | None = None
    ) -> bool:
        """Queue an entry for writing. Returns False if it was dropped."""
        try:
            self._queue.put_nowait((entry, context))
        except queue.Full:
            self.dropped += 1
            logger.warning(
                "Audit queue full, dropping event (type=%s action=%s)",
                entry.log_type.value,
                entry.action,
            )
            return False
        return True

    def flush(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Drain what is queued, then stop the worker.

        Waits at most `timeout` seconds in total. If the queue is
        still full when the time runs out, the worker is left to
        finish on its own as a daemon thread.
        """
        if not self.running:
            return
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning(
                "Audit dispatcher did not stop within %.1fs; queue still full (%d events)",
                timeout,
                self._queue.qsize(),
            )
            return

        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        self._thread.join(remaining)
        if self._thread.is_alive():
            logger.warning(
                "Audit dispatcher did not stop within %.1fs; %d events pending",
                timeout,
                self._queue.qsize(),
            )
        self._thread = None

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                entry, context = item
                self.writer.write(entry, context)
            except Exception:
                # write() already swallows storage errors; this guards the thread.
                logger.exception("Audit dispatcher failed to deliver an event")
            finally:
                self._queue.task_done()
