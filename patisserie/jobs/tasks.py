"""Background job tasks"""

from typing import Optional

import structlog
from twilio.rest import Client as TwilioClient

from patisserie.jobs.celery_app import celery_app
from patisserie.config import settings

logger = structlog.get_logger()

STATUS_MESSAGES = {
    "new": "We received your order #{number}.",
    "admin_accepted": "Your order #{number} has been accepted and is being prepared.",
    "transit": "Your order #{number} is on its way.",
    "delivered": "Your order #{number} has been delivered. Enjoy!",
    "completed": "Your order #{number} is complete. Thank you!",
    "cancelled": "Your order #{number} has been cancelled.",
}


def build_status_message(status_name: str, order_number: int) -> str:
    template = STATUS_MESSAGES.get(status_name, "Your order #{number} was updated.")
    return template.format(number=order_number)


@celery_app.task(name="notify_order_status", bind=True, max_retries=3, default_retry_delay=30)
def notify_order_status(self, order_id: str, order_number: int, status_name: str, phone: Optional[str] = None):
    """Text the customer about an order status change"""
    log = logger.bind(order_id=order_id, status=status_name)

    if not phone:
        log.info("Order notification skipped, no phone number")
        return False

    if not settings.twilio_enabled:
        log.info("Order notification skipped, Twilio not configured")
        return False

    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    try:
        message = client.messages.create(
            body=build_status_message(status_name, order_number),
            from_=settings.twilio_phone_number,
            to=phone,
        )
    except Exception as e:
        log.error("Failed to send order notification", error=str(e))
        raise self.retry(exc=e)

    log.info("Order notification sent", message_sid=message.sid)
    return True
