"""
Order Models - the order aggregate and its snapshots.

Order Status Flow (see orders.state_machine):
    PENDING    -> PROCESSING | CANCELLED
    PROCESSING -> SHIPPED | CANCELLED
    SHIPPED    -> DELIVERED | RETURNED
    DELIVERED  -> RETURNED
    CANCELLED, RETURNED are terminal

Orders are never deleted; cancellation is a status change. Prices and
addresses are copied onto the order when it is placed so later catalog
or address book edits do not alter it.
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from catalog.models import Product


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESSING = 'PROCESSING', 'Processing'
    SHIPPED = 'SHIPPED', 'Shipped'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'
    RETURNED = 'RETURNED', 'Returned'


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = 'CREDIT_CARD', 'Credit Card'
    DEBIT_CARD = 'DEBIT_CARD', 'Debit Card'
    PAYPAL = 'PAYPAL', 'PayPal'
    APPLE_PAY = 'APPLE_PAY', 'Apple Pay'
    GOOGLE_PAY = 'GOOGLE_PAY', 'Google Pay'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
    CASH_ON_DELIVERY = 'CASH_ON_DELIVERY', 'Cash on Delivery'
    STORE_CREDIT = 'STORE_CREDIT', 'Store Credit'
    GIFT_CARD = 'GIFT_CARD', 'Gift Card'
    RAZORPAY = 'RAZORPAY', 'Razorpay'


class OrderAddress(models.Model):
    """
    Address snapshot taken at checkout.

    Not linked to the user's address book; edits there never reach an
    order that was already placed.
    """
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=15)
    address_line1 = models.CharField(max_length=200)
    address_line2 = models.CharField(max_length=200, blank=True, default='')
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=10)
    country = models.CharField(max_length=100, default='India')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Order Address'
        verbose_name_plural = 'Order Addresses'

    def __str__(self):
        return f"{self.first_name} {self.last_name}, {self.city}, {self.state}"


class Order(models.Model):
    """
    Order placed by a customer from their cart.

    total_amount = subtotal + tax_amount + shipping_amount - discount_amount
    """
    Status = OrderStatus

    order_number = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        help_text="Human readable order number, ORD<unix-seconds><3 digits>"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders'
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
        help_text="Current order status"
    )
    subtotal = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0.00'))
    shipping_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(
        max_length=30,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH_ON_DELIVERY
    )
    coupon = models.ForeignKey(
        'coupons.Coupon',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders'
    )
    coupon_code = models.CharField(max_length=50, blank=True, default='')
    shipping_address = models.ForeignKey(
        OrderAddress,
        on_delete=models.PROTECT,
        related_name='shipped_orders'
    )
    billing_address = models.ForeignKey(
        OrderAddress,
        on_delete=models.PROTECT,
        related_name='billed_orders'
    )
    tracking_number = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='orders_orde_user_id_0c5d3e_idx'),
            models.Index(fields=['status', 'created_at'], name='orders_orde_status_7a1b2f_idx'),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.status})"

    def delete(self, *args, **kwargs):
        raise models.ProtectedError(
            "Orders are never deleted; cancel them instead.", {self}
        )

    @property
    def is_cancellable(self) -> bool:
        return self.status in (OrderStatus.PENDING, OrderStatus.PROCESSING)

    @property
    def computed_total(self) -> Decimal:
        return self.subtotal + self.tax_amount + self.shipping_amount - self.discount_amount

    @property
    def item_count(self) -> int:
        return self.items.count()


class OrderItem(models.Model):
    """
    OrderItem entity representing a product in an order.

    Stores the product name, SKU and unit price at time of order to
    preserve historical pricing.
    """
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Parent order"
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,  # Prevent deletion of products with orders
        related_name='order_items',
        help_text="Ordered product"
    )
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=100, blank=True, default='')
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Quantity ordered"
    )
    unit_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        help_text="Price per unit at time of order"
    )
    total_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        help_text="quantity x unit_price"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x {self.product_name} @ ₹{self.unit_price}"


class OrderStatusHistory(models.Model):
    """
    Append-only audit trail of status changes.

    Rows are written once and never edited or deleted.
    """
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    comment = models.CharField(max_length=500, blank=True, default='')
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_status_changes'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Order Status History'
        verbose_name_plural = 'Order Status History'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.order.order_number}: {self.status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Order status history is append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Order status history is append-only")
