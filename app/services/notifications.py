"""
Outbound email notifications.

Request handlers only *emit* messages onto a redis list; ``app.worker``
pops them and delivers through Mailjet. Nothing on the request side waits
for delivery or sees its errors.
"""
from datetime import date, time
from typing import Optional
import logging

import httpx
from pydantic import BaseModel

from ..core.config import settings

logger = logging.getLogger(__name__)


class EmailMessage(BaseModel):
    to_email: str
    to_name: str
    subject: str
    text: str
    html: str


class NotificationDispatcher:
    def __init__(self, redis_client, queue_name: Optional[str] = None):
        self.redis = redis_client
        self.queue_name = queue_name or settings.NOTIFICATION_QUEUE

    def emit(self, message: EmailMessage) -> None:
        """Queue a message and return; failures are logged and dropped."""
        try:
            self.redis.rpush(self.queue_name, message.model_dump_json())
            logger.info(f"Queued '{message.subject}' email for {message.to_email}")
        except Exception:
            logger.exception(f"Failed to queue '{message.subject}' email for {message.to_email}")


def booking_confirmation(
    to_email: str,
    to_name: str,
    doctor_name: str,
    appointment_date: date,
    appointment_time: time,
    reason: Optional[str] = None,
) -> EmailMessage:
    when = f"{appointment_date.isoformat()} at {appointment_time.strftime('%H:%M:%S')}"
    reason_line = f"\n\nReason for visit: {reason}" if reason else ""
    reason_html = f"<p>Reason for visit: {reason}</p>" if reason else ""
    return EmailMessage(
        to_email=to_email,
        to_name=to_name,
        subject="Appointment Confirmed",
        text=f"Dear {to_name},\n\nYour appointment has been confirmed with {doctor_name} on {when}.{reason_line}",
        html=(
            f"<h3>Dear {to_name},</h3>"
            f"<p>Your appointment has been confirmed with <strong>{doctor_name}</strong> "
            f"on <strong>{when}</strong>.</p>{reason_html}"
        ),
    )


def welcome_email(to_email: str, to_name: str) -> EmailMessage:
    return EmailMessage(
        to_email=to_email,
        to_name=to_name,
        subject="Welcome to the Clinic!",
        text=f"Dear {to_name},\n\nWelcome to our clinic system. Your account has been created successfully.",
        html=(
            f"<h3>Dear {to_name},</h3>"
            "<p>Welcome to our clinic system. Your account has been created successfully.</p>"
        ),
    )


class MailjetClient:
    """Thin wrapper over the Mailjet v3.1 send API."""

    def __init__(self, http_client: Optional[httpx.Client] = None):
        self.http = http_client or httpx.Client(timeout=10.0)

    def send(self, message: EmailMessage) -> None:
        payload = {
            "Messages": [
                {
                    "From": {"Email": settings.MAIL_SENDER, "Name": settings.MAIL_SENDER_NAME},
                    "To": [{"Email": message.to_email, "Name": message.to_name}],
                    "Subject": message.subject,
                    "TextPart": message.text,
                    "HTMLPart": message.html,
                }
            ]
        }
        response = self.http.post(
            settings.MAILJET_API_URL,
            json=payload,
            auth=(settings.MAILJET_API_KEY or "", settings.MAILJET_API_SECRET or ""),
        )
        response.raise_for_status()

    def close(self) -> None:
        self.http.close()
