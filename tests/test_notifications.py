import json
from datetime import date, time

import httpx
import pytest

from app.core.config import settings
from app.core.database import redis_client
from app.services.notifications import (
    EmailMessage,
    MailjetClient,
    NotificationDispatcher,
    booking_confirmation,
    welcome_email,
)
from app.worker import process_next


class StubMailer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, message):
        if self.fail:
            raise httpx.ConnectError("mailjet unreachable")
        self.sent.append(message)


@pytest.fixture
def queue():
    redis_client.flushall()
    yield redis_client
    redis_client.flushall()


def test_booking_confirmation_content():
    message = booking_confirmation(
        to_email="jane@example.com",
        to_name="Jane Doe",
        doctor_name="Gregory House",
        appointment_date=date(2026, 1, 5),
        appointment_time=time(10, 0),
        reason="Headache",
    )

    assert message.subject == "Appointment Confirmed"
    assert "Gregory House" in message.text
    assert "2026-01-05 at 10:00:00" in message.text
    assert "Headache" in message.html


def test_emit_pushes_json(queue):
    NotificationDispatcher(queue).emit(welcome_email("jane@example.com", "Jane Doe"))

    assert queue.llen(settings.NOTIFICATION_QUEUE) == 1
    payload = json.loads(queue.lpop(settings.NOTIFICATION_QUEUE))
    assert payload["to_email"] == "jane@example.com"
    assert payload["subject"] == "Welcome to the Clinic!"


def test_emit_swallows_queue_errors(queue, monkeypatch):
    def broken_rpush(*args, **kwargs):
        raise ConnectionError("redis is down")

    monkeypatch.setattr(queue, "rpush", broken_rpush)

    NotificationDispatcher(queue).emit(welcome_email("jane@example.com", "Jane Doe"))


class TestWorker:

    def test_delivers_queued_message(self, queue):
        NotificationDispatcher(queue).emit(welcome_email("jane@example.com", "Jane Doe"))
        mailer = StubMailer()

        assert process_next(queue, mailer, timeout=0) is True
        assert [m.to_email for m in mailer.sent] == ["jane@example.com"]
        assert queue.llen(settings.NOTIFICATION_QUEUE) == 0

    def test_empty_queue(self, queue):
        assert process_next(queue, StubMailer(), timeout=0) is False

    def test_send_failure_is_logged_and_dropped(self, queue, caplog):
        NotificationDispatcher(queue).emit(welcome_email("jane@example.com", "Jane Doe"))

        assert process_next(queue, StubMailer(fail=True), timeout=0) is True
        assert queue.llen(settings.NOTIFICATION_QUEUE) == 0
        assert "Failed to send" in caplog.text

    def test_malformed_message_is_discarded(self, queue):
        queue.rpush(settings.NOTIFICATION_QUEUE, "not json")
        mailer = StubMailer()

        assert process_next(queue, mailer, timeout=0) is True
        assert mailer.sent == []


def test_mailjet_payload(monkeypatch):
    monkeypatch.setattr(settings, "MAILJET_API_KEY", "key")
    monkeypatch.setattr(settings, "MAILJET_API_SECRET", "secret")
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"Messages": [{"Status": "success"}]})

    mailer = MailjetClient(httpx.Client(transport=httpx.MockTransport(handler)))
    mailer.send(EmailMessage(
        to_email="jane@example.com",
        to_name="Jane Doe",
        subject="Hello",
        text="plain",
        html="<p>html</p>",
    ))
    mailer.close()

    assert captured["url"] == settings.MAILJET_API_URL
    assert captured["auth"].startswith("Basic ")
    message = captured["body"]["Messages"][0]
    assert message["To"] == [{"Email": "jane@example.com", "Name": "Jane Doe"}]
    assert message["From"]["Email"] == settings.MAIL_SENDER
    assert message["TextPart"] == "plain"
    assert message["HTMLPart"] == "<p>html</p>"


def test_mailjet_error_status_raises():
    mailer = MailjetClient(httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(401))))

    with pytest.raises(httpx.HTTPStatusError):
        mailer.send(welcome_email("jane@example.com", "Jane Doe"))
