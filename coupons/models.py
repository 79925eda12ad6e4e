"""
Coupon Models - discount codes and their redemption records.

A coupon is validated against an order amount (see coupons.services) and
redeemed exactly once per placed order. Redemption inserts a CouponUsage
row and bumps used_count inside the order's transaction.
"""
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Coupon(models.Model):
    """
    Discount coupon.

    Codes are case-insensitive and stored upper-cased. A coupon that has
    been used cannot be deleted; deactivate it instead.
    """

    class DiscountType(models.TextChoices):
        PERCENTAGE = 'PERCENTAGE', 'Percentage'
        FIXED_AMOUNT = 'FIXED_AMOUNT', 'Fixed Amount'

    code = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        help_text="Coupon code (stored upper-cased)"
    )
    name = models.CharField(max_length=200, blank=True, default='')
    description = models.CharField(max_length=500, blank=True, default='')
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        help_text="Percentage of the order amount or a flat amount"
    )
    discount_value = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    minimum_order_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Order amount required before the coupon applies"
    )
    maximum_discount_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Cap for percentage discounts"
    )
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Total redemptions allowed across all users"
    )
    used_count = models.PositiveIntegerField(default=0)
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Coupon'
        verbose_name_plural = 'Coupons'
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['is_active', 'valid_from', 'valid_until'],
                name='coupons_cou_is_acti_5e0c1d_idx'
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.get_discount_type_display()} {self.discount_value})"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @classmethod
    def discount_error(cls, discount_type, discount_value) -> Optional[str]:
        if discount_value is None:
            return None
        if discount_type == cls.DiscountType.PERCENTAGE:
            if discount_value <= 0 or discount_value > 100:
                return "Percentage discount must be greater than 0 and at most 100"
        elif discount_value <= 0:
            return "Fixed discount amount must be greater than 0"
        return None

    @staticmethod
    def date_range_error(valid_from, valid_until) -> Optional[str]:
        if valid_from and valid_until and valid_from >= valid_until:
            return "Valid from date must be before valid until date"
        return None

    @staticmethod
    def usage_limit_error(usage_limit, used_count) -> Optional[str]:
        if usage_limit is not None and used_count > usage_limit:
            return f"Usage limit cannot be lower than the {used_count} times already used"
        return None

    def clean(self):
        """Rules shared by the admin forms and coupons.services."""
        errors = {}
        message = self.discount_error(self.discount_type, self.discount_value)
        if message:
            errors['discount_value'] = message
        message = self.date_range_error(self.valid_from, self.valid_until)
        if message:
            errors['valid_until'] = message
        message = self.usage_limit_error(self.usage_limit, self.used_count or 0)
        if message:
            errors['usage_limit'] = message
        if errors:
            raise ValidationError(errors)

    @property
    def is_percentage(self) -> bool:
        return self.discount_type == self.DiscountType.PERCENTAGE

    @property
    def usage_limit_reached(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit


class CouponUsage(models.Model):
    """
    One redemption of a coupon by a user for an order.

    A user may redeem a given coupon only once.
    """
    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.PROTECT,
        related_name='usages'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coupon_usages'
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        related_name='coupon_usages'
    )
    discount_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00')
    )
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Coupon Usage'
        verbose_name_plural = 'Coupon Usages'
        ordering = ['-used_at']
        constraints = [
            models.UniqueConstraint(
                fields=['coupon', 'user'],
                name='unique_coupon_usage_per_user'
            )
        ]

    def __str__(self):
        return f"{self.coupon.code} used by {self.user} on order #{self.order_id}"
