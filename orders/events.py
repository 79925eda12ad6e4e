"""
Post-commit publication of order events.

Services call publish_order_event() inside their transaction; the
notification and email tasks are queued only once that transaction
commits. A queueing failure is logged and never reaches the caller.
"""
import logging
from typing import Optional

from django.db import transaction

from notifications.tasks import deliver_order_status_notification, send_order_email

logger = logging.getLogger(__name__)


def _dispatch(user_id: int, order_id: int, status: str, message: str,
              email_kind: Optional[str]) -> None:
    try:
        deliver_order_status_notification.delay(user_id, order_id, status, message)
        logger.info(f"Queued {status} notification for order #{order_id}")
    except Exception as e:
        logger.error(f"Failed to queue notification for order #{order_id}: {e}")

    if email_kind is None:
        return

    try:
        send_order_email.delay(order_id, email_kind)
        logger.info(f"Queued {email_kind} email for order #{order_id}")
    except Exception as e:
        logger.error(f"Failed to queue {email_kind} email for order #{order_id}: {e}")


def publish_order_event(order, status: str, message: str,
                        email_kind: Optional[str] = None) -> None:
    """
    Schedule side effects for `order` to run after the current transaction.

    Args:
        order: The order the event is about
        status: Status value carried in the notification
        message: Notification text for the customer
        email_kind: Optional email to send ('confirmation', 'shipped', 'delivered')
    """
    user_id, order_id = order.user_id, order.id
    transaction.on_commit(
        lambda: _dispatch(user_id, order_id, str(status), message, email_kind)
    )
