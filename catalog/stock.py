"""
Stock accessor used by checkout and cancellation.

Every function here must run inside transaction.atomic(). Rows are locked
in primary key order to keep concurrent checkouts deadlock-free, and the
decrement is conditional so stock can never go negative even if a caller
skipped the lock.
"""
import logging
from typing import Dict, Iterable, Tuple

from django.db.models import F

from core.results import ServiceError
from .models import Product

logger = logging.getLogger(__name__)


class InsufficientStockError(ServiceError):
    """Raised when there's not enough stock for a product."""
    def __init__(self, product_name: str, requested: int, available: int):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for {product_name}")


def lock_products(product_ids: Iterable[int]) -> Dict[int, Product]:
    """Lock product rows FOR UPDATE and return them keyed by id."""
    queryset = Product.objects.select_for_update().filter(
        id__in=set(product_ids)
    ).order_by('id')
    return {product.id: product for product in queryset}


def decrement_stock(product: Product, quantity: int) -> None:
    """
    Atomically take `quantity` units of `product`.

    Raises:
        InsufficientStockError: If fewer than `quantity` units remain
    """
    updated = Product.objects.filter(
        id=product.id,
        stock_quantity__gte=quantity
    ).update(stock_quantity=F('stock_quantity') - quantity)

    if updated == 0:
        product.refresh_from_db(fields=['stock_quantity'])
        raise InsufficientStockError(product.name, quantity, product.stock_quantity)

    product.stock_quantity -= quantity
    logger.debug(
        f"Deducted {quantity} of {product.name}, remaining stock: {product.stock_quantity}"
    )


def restore_stock(lines: Iterable[Tuple[int, int]]) -> None:
    """Put (product_id, quantity) pairs back on the shelf."""
    for product_id, quantity in sorted(lines):
        Product.objects.filter(id=product_id).update(
            stock_quantity=F('stock_quantity') + quantity
        )
        logger.debug(f"Restored {quantity} units of product {product_id}")
