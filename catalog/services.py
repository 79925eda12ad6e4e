"""
Cart Service Layer.

The cart is a plain ownership list consumed by checkout; these helpers keep
one row per (user, product) and refuse quantities above current stock.
"""
import logging
from decimal import Decimal
from typing import Dict

from django.db import transaction

from core.results import NotFoundError, ServiceError, service_boundary
from .models import CartItem, Product

logger = logging.getLogger(__name__)


class CartError(ServiceError):
    pass


def get_cart_summary(user) -> Dict:
    items = list(
        CartItem.objects.filter(user=user).select_related('product').order_by('id')
    )
    subtotal = sum((item.line_total for item in items), Decimal('0.00'))
    return {
        'items': items,
        'item_count': sum(item.quantity for item in items),
        'subtotal': subtotal,
    }


@service_boundary('adding item to cart')
def add_to_cart(user, product_id: int, quantity: int) -> CartItem:
    """Add a product, merging with an existing line for the same product."""
    if quantity < 1:
        raise CartError("Quantity must be at least 1")

    with transaction.atomic():
        try:
            product = Product.objects.get(id=product_id, is_active=True)
        except Product.DoesNotExist:
            raise NotFoundError("Product not found")

        item = CartItem.objects.select_for_update().filter(
            user=user, product=product
        ).first()
        new_quantity = quantity + (item.quantity if item else 0)

        if new_quantity > product.stock_quantity:
            raise CartError(
                f"Only {product.stock_quantity} units of {product.name} available"
            )

        if item is None:
            item = CartItem.objects.create(
                user=user,
                product=product,
                quantity=new_quantity,
                price_at_time=product.price
            )
        else:
            item.quantity = new_quantity
            item.price_at_time = product.price
            item.save(update_fields=['quantity', 'price_at_time', 'updated_at'])

    logger.info(f"User {user.pk} cart: {product.name} x{item.quantity}")
    return item


@service_boundary('updating cart item')
def update_cart_item(user, item_id: int, quantity: int) -> CartItem:
    if quantity < 1:
        raise CartError("Quantity must be at least 1")

    try:
        item = CartItem.objects.select_related('product').get(id=item_id, user=user)
    except CartItem.DoesNotExist:
        raise NotFoundError("Cart item not found")

    if quantity > item.product.stock_quantity:
        raise CartError(
            f"Only {item.product.stock_quantity} units of {item.product.name} available"
        )

    item.quantity = quantity
    item.save(update_fields=['quantity', 'updated_at'])
    return item


@service_boundary('removing cart item')
def remove_cart_item(user, item_id: int) -> None:
    deleted, _ = CartItem.objects.filter(id=item_id, user=user).delete()
    if not deleted:
        raise NotFoundError("Cart item not found")


@service_boundary('clearing cart')
def clear_cart(user) -> int:
    deleted, _ = CartItem.objects.filter(user=user).delete()
    return deleted
