"""
Catalog Models - products offered by the store and the shopper's cart.

Models:
    - Category: Product categorization
    - Product: Items available for sale, with their stock level
    - CartItem: A product a user intends to buy (one row per user/product)
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Category(models.Model):
    """
    Product category for organizing products.
    """
    name = models.CharField(
        max_length=100,
        unique=True,
        db_index=True,
        help_text="Unique category name"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(models.Model):
    """
    Product entity representing items available for sale.

    stock_quantity is decremented at checkout and restored when an order
    is cancelled before shipping. See catalog.stock.
    """
    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Product name for display and search"
    )
    sku = models.CharField(
        max_length=100,
        blank=True,
        default='',
        help_text="Stock keeping unit"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="Optional product description"
    )
    price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Current selling price (INR)"
    )
    stock_quantity = models.PositiveIntegerField(
        default=0,
        help_text="Units available for sale"
    )
    low_stock_threshold = models.PositiveIntegerField(
        default=5,
        help_text="Threshold for low stock alerts"
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name='products',
        help_text="Product category"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether product is available for ordering"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name', 'is_active'], name='catalog_pro_name_1b8f7e_idx'),
            models.Index(fields=['category', 'is_active'], name='catalog_pro_categor_4c2a91_idx'),
        ]

    def __str__(self):
        return f"{self.name} (₹{self.price})"

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_quantity == 0


class CartItem(models.Model):
    """
    A line in a user's shopping cart.

    price_at_time records the price when the item was added; checkout
    re-prices every line at the product's current price.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='cart_items'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='cart_items'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_at_time = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Cart Item'
        verbose_name_plural = 'Cart Items'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'product'],
                name='unique_user_product_cart_item'
            )
        ]

    def __str__(self):
        return f"{self.quantity}x {self.product.name} for {self.user}"

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.product.price
