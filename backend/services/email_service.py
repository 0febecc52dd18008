from postmarker.core import PostmarkClient
from models import MessageLog
from datetime import datetime, timezone
from typing import Optional
import os
import logging

logger = logging.getLogger(__name__)

# Verified sender in Postmark
DEFAULT_SENDER = os.getenv("EMAIL_SENDER", "alice@entreprebot.co.za")


class EmailService:
    def __init__(self, server_token: Optional[str] = None):
        postmark_token = server_token if server_token is not None else os.getenv("POSTMARK_SERVER_TOKEN")
        if not postmark_token:
            logger.warning("POSTMARK_SERVER_TOKEN not set - emails will be logged but not sent")
            self.client = None
        else:
            self.client = PostmarkClient(server_token=postmark_token)
            logger.info("Postmark email client initialized")

    def send_html(self, recipient: str, subject: str, html_body: str, tag: Optional[str] = None) -> MessageLog:
        """Send one HTML email. Blocking; callers on the event loop go through the dispatcher.

        Provider errors are recorded on the returned MessageLog, never raised.
        """
        message_log = MessageLog(recipient=recipient, subject=subject)

        try:
            if self.client:
                response = self.client.emails.send(
                    From=DEFAULT_SENDER,
                    To=recipient,
                    Subject=subject,
                    HtmlBody=html_body,
                    TrackOpens=False,
                    Tag=tag,
                )
                message_log.postmark_message_id = response["MessageID"]
                message_log.status = "sent"
                message_log.sent_at = datetime.now(timezone.utc)
                logger.info(f"Email sent to {recipient}: {response['MessageID']}")
            else:
                # Dev mode - just log
                message_log.status = "sent"
                message_log.sent_at = datetime.now(timezone.utc)
                logger.info(f"[DEV MODE] Email logged (not sent) to {recipient}: {subject}")

        except Exception as e:
            message_log.status = "failed"
            message_log.error_message = str(e)
            message_log.provider_error_type = type(e).__name__
            logger.error(f"Failed to send email to {recipient}: {e}")

        return message_log


email_service = EmailService()
