"""
Fire-and-forget notification dispatch.
Callers hand off an email and return immediately; delivery runs as a task on
the event loop with the blocking Postmark call pushed to a worker thread.
No retry, no backoff: a failed or dropped notification is logged and forgotten.
"""
from __future__ import annotations

import asyncio
import logging
import os
from collections import deque
from typing import Deque, Optional, Set

from models import MessageLog
from services.email_service import EmailService, email_service

logger = logging.getLogger(__name__)

NOTIFICATION_MAX_IN_FLIGHT = int(os.getenv("NOTIFICATION_MAX_IN_FLIGHT", "100"))
# Most recent delivery outcomes kept for inspection; older ones are discarded
NOTIFICATION_RESULT_HISTORY = int(os.getenv("NOTIFICATION_RESULT_HISTORY", "100"))


class NotificationDispatcher:
    def __init__(
        self,
        sender: Optional[EmailService] = None,
        max_in_flight: int = NOTIFICATION_MAX_IN_FLIGHT,
        history: int = NOTIFICATION_RESULT_HISTORY,
    ):
        self.sender = sender or email_service
        self.max_in_flight = max_in_flight
        self._in_flight: Set[asyncio.Task] = set()
        self.results: Deque[MessageLog] = deque(maxlen=history)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def dispatch(self, recipient: Optional[str], subject: str, html_body: str, tag: Optional[str] = None) -> bool:
        """Schedule a send without awaiting it. Returns False if it was dropped."""
        if not recipient:
            logger.warning("Notification dropped (no recipient configured): %s", subject)
            return False
        if len(self._in_flight) >= self.max_in_flight:
            logger.error(
                "Notification dropped (in-flight limit %s reached) to=%s subject=%s",
                self.max_in_flight, recipient, subject,
            )
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Notification dropped (no running event loop) to=%s subject=%s", recipient, subject)
            return False

        task = loop.create_task(self._deliver(recipient, subject, html_body, tag))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return True

    async def _deliver(self, recipient: str, subject: str, html_body: str, tag: Optional[str]) -> None:
        try:
            result = await asyncio.to_thread(self.sender.send_html, recipient, subject, html_body, tag)
        except Exception as e:
            logger.error("Notification delivery crashed to=%s subject=%s: %s", recipient, subject, e)
            result = MessageLog(
                recipient=recipient,
                subject=subject,
                status="failed",
                error_message=str(e),
                provider_error_type=type(e).__name__,
            )
        if result.status != "sent":
            logger.warning("Notification not delivered to=%s subject=%s error=%s", recipient, subject, result.error_message)
        self.results.append(result)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight sends (shutdown and tests)."""
        pending = list(self._in_flight)
        if not pending:
            return
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("%s notification(s) still in flight after drain timeout", len(not_done))


notification_dispatcher = NotificationDispatcher()
