"""
Notification sender and inbox helpers.
"""
import logging

from django.utils import timezone

from orders.models import OrderStatus
from .models import Notification

logger = logging.getLogger(__name__)


def send_order_status_notification(user_id: int, order_id: int, status: str, message: str) -> Notification:
    """
    Store an ORDER_UPDATE notification for the user's inbox.

    Args:
        user_id: Recipient
        order_id: Order the update refers to
        status: New order status value, e.g. "SHIPPED"
        message: Text shown to the user
    """
    try:
        label = OrderStatus(status).label
    except ValueError:
        label = status

    notification = Notification.objects.create(
        user_id=user_id,
        order_id=order_id,
        type=Notification.Type.ORDER_UPDATE,
        title=f"Order {label}",
        message=message
    )
    logger.info(f"Notification #{notification.id} sent to user {user_id} for order #{order_id}")
    return notification


def unread_count(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).count()


def mark_as_read(user, notification_id: int) -> bool:
    """Returns False when the notification does not belong to `user`."""
    try:
        notification = Notification.objects.get(id=notification_id, user=user)
    except Notification.DoesNotExist:
        return False

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = timezone.now()
        notification.save(update_fields=['is_read', 'read_at'])
    return True


def mark_all_as_read(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(
        is_read=True, read_at=timezone.now()
    )
