"""
Celery tasks delivering order side effects.

Tasks:
    - deliver_order_status_notification: In-app notification for a status change
    - send_order_email: Confirmation / shipped / delivered email

Both are queued only after the order transaction commits (see
orders.events) and retry on failure; an order is never rolled back
because one of these failed.
"""
import logging

from celery import shared_task

from . import emails
from .services import send_order_status_notification

logger = logging.getLogger(__name__)

EMAIL_CONFIRMATION = 'confirmation'
EMAIL_SHIPPED = 'shipped'
EMAIL_DELIVERED = 'delivered'


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def deliver_order_status_notification(self, user_id: int, order_id: int, status: str, message: str):
    """
    Args:
        user_id: Recipient
        order_id: Order the update refers to
        status: Order status value
        message: Text shown to the user

    Returns:
        Dict with delivery details
    """
    notification = send_order_status_notification(user_id, order_id, status, message)
    return {
        'status': 'success',
        'notification_id': notification.id,
        'order_id': order_id,
    }


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def send_order_email(self, order_id: int, kind: str):
    """
    Send one of the transactional order emails.

    Args:
        order_id: ID of the order
        kind: 'confirmation', 'shipped' or 'delivered'

    Returns:
        Dict with send details
    """
    from orders.models import Order

    try:
        order = Order.objects.select_related('user').get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order #{order_id} not found for {kind} email")
        return {'status': 'error', 'message': f'Order {order_id} not found'}

    user = order.user
    if not user.email:
        logger.warning(f"User {user.pk} has no email address, skipping {kind} email")
        return {'status': 'skipped', 'message': 'No email address'}

    name = user.get_full_name() or user.get_username()

    if kind == EMAIL_CONFIRMATION:
        emails.send_order_confirmation(user.email, name, order.order_number, order.total_amount)
    elif kind == EMAIL_SHIPPED:
        if not order.tracking_number:
            logger.info(f"Order {order.order_number} shipped without tracking number, skipping email")
            return {'status': 'skipped', 'message': 'No tracking number'}
        emails.send_order_shipped(user.email, name, order.order_number, order.tracking_number)
    elif kind == EMAIL_DELIVERED:
        emails.send_order_delivered(user.email, name, order.order_number)
    else:
        logger.error(f"Unknown order email kind {kind!r}")
        return {'status': 'error', 'message': f'Unknown email kind {kind}'}

    return {
        'status': 'success',
        'order_id': order.id,
        'message': f'{kind} email sent for order {order.order_number}'
    }
