# backend/tn_scheduler/services/notification_service.py
"""
Notification Service - delivers reminder notifications.

Channels:
- webhook: JSON POST to the configured URL, title/message mirrored into the
  query string for receivers that only read query parameters
- email: plaintext + HTML message over SMTP

Every failure (missing configuration, transport error, timeout, non-2xx)
is raised as DeliveryError. Nothing here retries.
"""

import html
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict, List, Optional

import requests

from ..config import Settings
from ..constants import EMAIL_FOOTER, EMAIL_SUBJECT_PREFIX, WEBHOOK_USER_AGENT
from ..enums import LogEmoji, LoggerName, LogSource, NotificationChannel
from ..exceptions import DeliveryError
from ..utils.time_utils import format_year_month_day_hour_min, utc_now
from .logger import get_service_logger

notification_logger = get_service_logger(
    LoggerName.NOTIFICATION_SERVICE, LogSource.DISPATCH, default_emoji=LogEmoji.NOTIFICATION
)


class NotificationMessage:
    """Everything a channel needs to render one notification."""

    def __init__(
        self,
        title: str,
        message: Optional[str] = None,
        notify_at: Optional[datetime] = None,
        timezone: str = "UTC",
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
        definition_id: Optional[str] = None,
    ):
        self.title = title
        self.message = message
        self.notify_at = notify_at or utc_now()
        self.timezone = timezone
        self.category = category
        self.tags = list(tags or [])
        self.definition_id = definition_id

    @property
    def local_time_text(self) -> str:
        return format_year_month_day_hour_min(self.notify_at, self.timezone)


class NotificationService:
    """Webhook and email delivery configured from Settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, channel: NotificationChannel, notification: NotificationMessage) -> None:
        if channel == NotificationChannel.WEBHOOK:
            self.send_webhook(notification)
        elif channel == NotificationChannel.EMAIL:
            self.send_email(notification)
        else:
            raise DeliveryError(f"Unknown notification channel: {channel}")

    # ────────────────────────────────────────────────────────────────────────
    # Webhook
    # ────────────────────────────────────────────────────────────────────────

    def build_webhook_body(self, notification: NotificationMessage) -> Dict[str, Any]:
        """JSON body; empty fields are omitted rather than sent blank."""
        body: Dict[str, Any] = {
            "id": notification.definition_id,
            "title": notification.title,
            "message": notification.message,
            "notification_datetime": notification.notify_at.isoformat(),
            "timezone": notification.timezone,
            "category": notification.category,
            "tags": notification.tags,
        }
        return {key: value for key, value in body.items() if value}

    def build_webhook_params(self, notification: NotificationMessage) -> Dict[str, str]:
        params = {}
        if notification.title:
            params["title"] = notification.title
        if notification.message:
            params["message"] = notification.message
        return params

    def send_webhook(self, notification: NotificationMessage) -> int:
        """
        POST the notification to the configured webhook.

        Returns:
            HTTP status code of the (2xx) response

        Raises:
            DeliveryError: No URL configured, transport failure or non-2xx
        """
        if not self.settings.webhook_url:
            raise DeliveryError("WEBHOOK_URL not configured")

        try:
            response = requests.post(
                self.settings.webhook_url,
                json=self.build_webhook_body(notification),
                params=self.build_webhook_params(notification),
                headers={"User-Agent": WEBHOOK_USER_AGENT},
                timeout=self.settings.webhook_timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            raise DeliveryError(
                f"Webhook timed out after {self.settings.webhook_timeout_seconds}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Webhook request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise DeliveryError(f"Webhook returned HTTP {response.status_code}")

        notification_logger.info(
            f"Webhook sent ({response.status_code}): {notification.title}",
            emoji=LogEmoji.WEBHOOK,
        )
        return response.status_code

    # ────────────────────────────────────────────────────────────────────────
    # Email
    # ────────────────────────────────────────────────────────────────────────

    def render_email_text(self, notification: NotificationMessage) -> str:
        lines = [f"Reminder: {notification.title}", ""]
        if notification.message:
            lines += [f"Message: {notification.message}", ""]
        lines.append(f"Notification time: {notification.local_time_text}")
        if notification.category:
            lines.append(f"Category: {notification.category}")
        if notification.tags:
            lines.append(f"Tags: {', '.join(notification.tags)}")
        lines += ["", "---", EMAIL_FOOTER]
        return "\n".join(lines)

    def render_email_html(self, notification: NotificationMessage) -> str:
        parts = [f"<h2>🔔 Reminder: {html.escape(notification.title)}</h2>"]
        if notification.message:
            message_html = html.escape(notification.message).replace("\n", "<br>")
            parts.append(f"<p><strong>Message:</strong><br>{message_html}</p>")
        parts.append(
            f"<p><strong>Notification time:</strong> "
            f"{html.escape(notification.local_time_text)}</p>"
        )
        if notification.category:
            parts.append(
                f"<p><strong>Category:</strong> {html.escape(notification.category)}</p>"
            )
        if notification.tags:
            tags = html.escape(", ".join(notification.tags))
            parts.append(f"<p><strong>Tags:</strong> {tags}</p>")
        parts.append(f"<hr><p><small>{html.escape(EMAIL_FOOTER)}</small></p>")
        return "\n".join(parts)

    def build_email(self, notification: NotificationMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"{EMAIL_SUBJECT_PREFIX}{notification.title}"
        msg["From"] = self.settings.smtp_user
        msg["To"] = self.settings.email_to
        msg.set_content(self.render_email_text(notification))
        msg.add_alternative(self.render_email_html(notification), subtype="html")
        return msg

    def send_email(self, notification: NotificationMessage) -> None:
        """
        Send the notification over SMTP.

        Raises:
            DeliveryError: Transport not configured, no recipient, or SMTP failure
        """
        if not self.settings.email_configured:
            raise DeliveryError("Email transport not configured")
        if not self.settings.email_to:
            raise DeliveryError("EMAIL_TO not configured")

        msg = self.build_email(notification)
        host = self.settings.smtp_host
        port = self.settings.smtp_port
        timeout = self.settings.smtp_timeout_seconds
        try:
            if self.settings.smtp_secure:
                with smtplib.SMTP_SSL(host, port, timeout=timeout) as server:
                    server.login(self.settings.smtp_user, self.settings.smtp_pass)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(host, port, timeout=timeout) as server:
                    server.starttls()
                    server.login(self.settings.smtp_user, self.settings.smtp_pass)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Email delivery failed: {e}") from e

        notification_logger.info(
            f"Email sent to {self.settings.email_to}: {notification.title}",
            emoji=LogEmoji.EMAIL,
        )
