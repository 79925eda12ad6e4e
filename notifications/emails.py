"""
Transactional order emails.

Plain-text messages sent through Django's mail framework. Failures raise
so the calling Celery task can retry.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _send(email: str, subject: str, body: str) -> None:
    send_mail(
        subject=subject,
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
        fail_silently=False,
    )
    logger.info(f"Sent '{subject}' to {email}")


def send_order_confirmation(email: str, name: str, order_number: str, total_amount: Decimal) -> None:
    _send(
        email,
        f"Order Confirmation - {order_number}",
        f"Hi {name},\n\n"
        f"Thank you for shopping with {settings.STORE_NAME}!\n"
        f"Your order {order_number} has been placed successfully.\n"
        f"Order total: ₹{Decimal(total_amount):.2f}\n\n"
        f"We will let you know as soon as it ships.\n"
    )


def send_order_shipped(email: str, name: str, order_number: str, tracking_number: str) -> None:
    _send(
        email,
        f"Your order {order_number} has shipped",
        f"Hi {name},\n\n"
        f"Good news! Your order {order_number} is on its way.\n"
        f"Tracking number: {tracking_number}\n"
    )


def send_order_delivered(email: str, name: str, order_number: str) -> None:
    _send(
        email,
        f"Your order {order_number} has been delivered",
        f"Hi {name},\n\n"
        f"Your order {order_number} has been delivered.\n"
        f"We'd love to hear what you think. Leave a review at "
        f"{settings.FRONTEND_URL}/orders/{order_number}\n"
    )
