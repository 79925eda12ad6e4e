"""
Order Service Layer - checkout and order lifecycle.

Checkout (create_order) is all-or-nothing:
1. Load the user's cart; an empty cart fails
2. Lock the cart's product rows with select_for_update()
3. Validate ALL lines have enough stock before touching anything
4. Price every line at the product's current price, add GST and shipping
5. Validate the coupon (if any) against subtotal + tax + shipping
6. Create the order, item/address snapshots and the first history row
7. Deduct stock, redeem the coupon, empty the cart
8. After commit: queue the notification and confirmation email

Any failure in steps 1-7 rolls back the whole transaction.

Status changes go through orders.state_machine; every change appends
one OrderStatusHistory row.
"""
import logging
import random
import time
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from catalog.models import CartItem
from catalog.stock import (
    InsufficientStockError,
    decrement_stock,
    lock_products,
    restore_stock,
)
from core.results import NotFoundError, ServiceError, service_boundary
from coupons.models import Coupon
from coupons.services import check_coupon, redeem_coupon
from notifications.tasks import EMAIL_CONFIRMATION, EMAIL_DELIVERED, EMAIL_SHIPPED
from .events import publish_order_event
from .models import (
    Order,
    OrderAddress,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    PaymentMethod,
)
from .pricing import calculate_shipping, calculate_tax, calculate_total, to_money
from .state_machine import RESTOCK_ON, ensure_transition

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = (
    'first_name', 'last_name', 'phone_number', 'address_line1', 'address_line2',
    'city', 'state', 'postal_code', 'country',
)


class OrderError(ServiceError):
    """Raised when an order cannot be placed or changed."""
    pass


class OrderNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Order not found")


def generate_order_number() -> str:
    """ORD + unix seconds + 3 random digits, e.g. ORD1709876543284."""
    return f"ORD{int(time.time())}{random.randint(100, 999)}"


def _unique_order_number() -> str:
    attempts = getattr(settings, 'ORDER_NUMBER_MAX_ATTEMPTS', 5)
    for _ in range(attempts):
        order_number = generate_order_number()
        if not Order.objects.filter(order_number=order_number).exists():
            return order_number
        logger.warning(f"Order number collision on {order_number}, regenerating")
    raise OrderError("Could not allocate an order number, please retry")


def _snapshot_address(data: Dict) -> OrderAddress:
    return OrderAddress.objects.create(
        **{field: data[field] for field in ADDRESS_FIELDS if data.get(field) is not None}
    )


def _record_status(order: Order, status: str, comment: str, actor=None) -> OrderStatusHistory:
    return OrderStatusHistory.objects.create(
        order=order,
        status=status,
        comment=comment,
        updated_by=actor
    )


@service_boundary('creating order')
def create_order(user, shipping_address: Dict, billing_address: Optional[Dict] = None,
                 coupon_code: Optional[str] = None,
                 payment_method: str = PaymentMethod.CASH_ON_DELIVERY) -> Order:
    """
    Place an order from the user's cart.

    Args:
        user: Customer placing the order
        shipping_address: Address fields (see ADDRESS_FIELDS)
        billing_address: Optional; defaults to the shipping address
        coupon_code: Optional coupon code; an invalid code fails the order
        payment_method: One of PaymentMethod

    Returns:
        ServiceResult carrying the created Order
    """
    with transaction.atomic():
        cart_items = list(
            CartItem.objects.filter(user=user).select_related('product').order_by('product_id')
        )
        if not cart_items:
            raise OrderError("Cart is empty")

        products = lock_products(item.product_id for item in cart_items)

        # FAIL-FAST: check every line before any deduction
        for item in cart_items:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                raise OrderError(f"{item.product.name} is no longer available")
            if product.stock_quantity < item.quantity:
                raise InsufficientStockError(
                    product.name, item.quantity, product.stock_quantity
                )

        subtotal = to_money(sum(
            (item.quantity * products[item.product_id].price for item in cart_items),
            Decimal('0')
        ))
        tax_amount = calculate_tax(subtotal)
        shipping_amount = calculate_shipping(subtotal, shipping_address.get('state'))

        coupon = None
        discount_amount = Decimal('0.00')
        if coupon_code:
            coupon = Coupon.objects.select_for_update().filter(
                code__iexact=coupon_code.strip()
            ).first()
            validation = check_coupon(
                coupon, coupon_code, subtotal + tax_amount + shipping_amount, user.pk
            )
            if not validation.is_valid:
                raise OrderError(validation.error_message or "Invalid coupon")
            discount_amount = validation.discount_amount

        total_amount = calculate_total(subtotal, tax_amount, shipping_amount, discount_amount)

        shipping = _snapshot_address(shipping_address)
        billing = _snapshot_address(billing_address) if billing_address else shipping

        order = Order.objects.create(
            order_number=_unique_order_number(),
            user=user,
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            discount_amount=discount_amount,
            total_amount=total_amount,
            payment_method=payment_method,
            coupon=coupon,
            coupon_code=coupon.code if coupon else '',
            shipping_address=shipping,
            billing_address=billing
        )

        order_items = []
        for item in cart_items:
            product = products[item.product_id]
            order_items.append(OrderItem(
                order=order,
                product=product,
                product_name=product.name,
                product_sku=product.sku,
                quantity=item.quantity,
                unit_price=product.price,
                total_price=to_money(item.quantity * product.price)
            ))
        OrderItem.objects.bulk_create(order_items)

        _record_status(order, OrderStatus.PENDING, "Order placed successfully", user)

        for item in cart_items:
            decrement_stock(products[item.product_id], item.quantity)

        if coupon is not None:
            redeem_coupon(coupon.id, user, order, discount_amount)

        CartItem.objects.filter(id__in=[item.id for item in cart_items]).delete()

        publish_order_event(
            order,
            OrderStatus.PENDING,
            "Your order has been placed successfully!",
            EMAIL_CONFIRMATION
        )

    logger.info(
        f"Order {order.order_number} placed by user {user.pk}: "
        f"{len(order_items)} items, total ₹{total_amount}"
    )
    return order


def _transition(order: Order, new_status: str, comment: str, actor=None,
                tracking_number: Optional[str] = None) -> None:
    """Apply a legal status change and its side effects; caller holds the row lock."""
    ensure_transition(order.status, new_status)

    now = timezone.now()
    order.status = new_status

    if new_status == OrderStatus.SHIPPED:
        if tracking_number:
            order.tracking_number = tracking_number
        order.shipped_at = now
    elif new_status == OrderStatus.DELIVERED:
        order.delivered_at = now

    if new_status in RESTOCK_ON:
        restore_stock(order.items.values_list('product_id', 'quantity'))

    order.save()
    _record_status(order, new_status, comment, actor)


def _lock_order(order_id: int, user=None) -> Order:
    queryset = Order.objects.select_for_update().filter(id=order_id)
    if user is not None:
        queryset = queryset.filter(user=user)
    order = queryset.first()
    if order is None:
        raise OrderNotFoundError()
    return order


@service_boundary('updating order status')
def update_order_status(order_id: int, new_status: str, tracking_number: Optional[str] = None,
                        comment: Optional[str] = None, actor=None) -> Order:
    """
    Move an order to `new_status` (staff operation).

    Illegal transitions fail and leave the order unchanged.
    """
    with transaction.atomic():
        order = _lock_order(order_id)
        old_status = order.status
        label = OrderStatus(new_status).label if new_status in OrderStatus.values else new_status

        _transition(
            order,
            new_status,
            comment or f"Order status updated to {label}",
            actor,
            tracking_number
        )

        if new_status == OrderStatus.CANCELLED:
            publish_order_event(order, new_status, "Your order has been cancelled")
        else:
            email_kind = {
                OrderStatus.SHIPPED: EMAIL_SHIPPED,
                OrderStatus.DELIVERED: EMAIL_DELIVERED,
            }.get(new_status)
            publish_order_event(
                order,
                new_status,
                f"Your order status has been updated to {label}",
                email_kind
            )

    logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")
    return order


@service_boundary('cancelling order')
def cancel_order(order_id: int, user):
    """
    Cancel one of the user's own orders while it is Pending or Processing.

    Stock for every item is put back.
    """
    with transaction.atomic():
        order = _lock_order(order_id, user=user)

        if not order.is_cancellable:
            raise OrderError("Order cannot be cancelled at this stage")

        _transition(order, OrderStatus.CANCELLED, "Order cancelled by customer", user)
        publish_order_event(order, OrderStatus.CANCELLED, "Your order has been cancelled")

    logger.info(f"Order {order.order_number} cancelled by user {user.pk}")
    return order


# =============================================================================
# Queries
# =============================================================================

def order_queryset():
    return Order.objects.select_related(
        'user', 'shipping_address', 'billing_address'
    ).prefetch_related('items', 'status_history')


def _visible_to(queryset, user):
    if user is not None and not user.is_staff:
        queryset = queryset.filter(user=user)
    return queryset


@service_boundary('retrieving order')
def get_order(order_id: int, user=None) -> Order:
    """Staff see every order; customers only their own."""
    order = _visible_to(order_queryset(), user).filter(id=order_id).first()
    if order is None:
        raise OrderNotFoundError()
    return order


@service_boundary('retrieving order')
def get_order_by_number(order_number: str, user=None) -> Order:
    order = _visible_to(order_queryset(), user).filter(order_number=order_number).first()
    if order is None:
        raise OrderNotFoundError()
    return order


def get_user_orders(user):
    return order_queryset().filter(user=user).order_by('-created_at')
