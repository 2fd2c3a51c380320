"""
Notification worker.

Pops queued email messages off redis and hands them to Mailjet. Run with
``python -m app.worker``.
"""
import logging

from pydantic import ValidationError

from .core.config import settings
from .core.database import redis_client
from .services.notifications import EmailMessage, MailjetClient

logger = logging.getLogger(__name__)


def process_next(redis, mailer: MailjetClient, timeout: int = 5) -> bool:
    """
    Deliver at most one queued message.

    Returns False when the queue was empty within ``timeout``. Delivery
    failures are logged and the message is dropped.
    """
    item = redis.blpop([settings.NOTIFICATION_QUEUE], timeout=timeout)
    if item is None:
        return False

    _, raw = item
    try:
        message = EmailMessage.model_validate_json(raw)
    except ValidationError:
        logger.error(f"Discarding malformed notification: {raw!r}")
        return True

    try:
        mailer.send(message)
        logger.info(f"Sent '{message.subject}' email to {message.to_email}")
    except Exception:
        logger.exception(f"Failed to send '{message.subject}' email to {message.to_email}")
    return True


def run(redis=None, mailer=None) -> None:
    redis = redis or redis_client
    mailer = mailer or MailjetClient()
    logger.info(f"Notification worker listening on '{settings.NOTIFICATION_QUEUE}'")
    try:
        while True:
            process_next(redis, mailer)
    except KeyboardInterrupt:
        logger.info("Notification worker stopped")
    finally:
        mailer.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
