"""
Coupon Service Layer - validation, redemption and administration.

Validation checks, in order, and stops at the first failure:
1. Code exists (case-insensitive)
2. Coupon is active
3. Validity window has started
4. Validity window has not ended
5. Order amount reaches the minimum
6. Global usage limit not reached
7. The user has not redeemed it before

Validation never raises for these cases; it returns a
CouponValidationResult with is_valid=False and a message.

Redemption (use_coupon / redeem_coupon) is separate and only happens
for a placed order, inside that order's transaction.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.results import (
    UNEXPECTED_ERROR_MESSAGE,
    NotFoundError,
    ServiceError,
    ServiceResult,
    service_boundary,
)
from orders.pricing import to_money
from .models import Coupon, CouponUsage

logger = logging.getLogger(__name__)


class CouponError(ServiceError):
    """Raised when a coupon cannot be created, changed or redeemed."""
    pass


@dataclass
class CouponValidationResult:
    is_valid: bool
    coupon_code: str
    discount_amount: Decimal = Decimal('0.00')
    error_message: Optional[str] = None
    coupon_id: Optional[int] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None

    def invalid(self, message: str) -> 'CouponValidationResult':
        self.is_valid = False
        self.error_message = message
        return self


def find_coupon(code: str) -> Optional[Coupon]:
    return Coupon.objects.filter(code__iexact=(code or '').strip()).first()


def calculate_discount(coupon: Coupon, order_amount: Decimal) -> Decimal:
    """
    Discount for `order_amount`.

    Percentage discounts are capped by maximum_discount_amount when set;
    every discount is capped by the order amount itself.
    """
    if coupon.is_percentage:
        discount = to_money(order_amount * coupon.discount_value / Decimal('100'))
        if (coupon.maximum_discount_amount is not None
                and discount > coupon.maximum_discount_amount):
            discount = coupon.maximum_discount_amount
    else:
        discount = coupon.discount_value

    return to_money(min(discount, order_amount))


def check_coupon(coupon: Optional[Coupon], code: str, order_amount: Decimal,
                 user_id=None, now=None) -> CouponValidationResult:
    """Run the validation rules against an already loaded coupon."""
    result = CouponValidationResult(is_valid=False, coupon_code=code)
    now = now or timezone.now()

    if coupon is None:
        return result.invalid("Invalid coupon code")

    if not coupon.is_active:
        return result.invalid("Coupon is not active")

    if now < coupon.valid_from:
        valid_from = timezone.localtime(coupon.valid_from).strftime('%d/%m/%Y')
        return result.invalid(f"Coupon is valid from {valid_from}")

    if now > coupon.valid_until:
        return result.invalid("Coupon has expired")

    if order_amount < coupon.minimum_order_amount:
        return result.invalid(
            f"Minimum order amount is ₹{coupon.minimum_order_amount:.2f}"
        )

    if coupon.usage_limit_reached:
        return result.invalid("Coupon usage limit exceeded")

    if user_id is not None and CouponUsage.objects.filter(
        coupon=coupon, user_id=user_id
    ).exists():
        return result.invalid("You have already used this coupon")

    result.is_valid = True
    result.coupon_id = coupon.id
    result.coupon_code = coupon.code
    result.discount_type = coupon.discount_type
    result.discount_value = coupon.discount_value
    result.discount_amount = calculate_discount(coupon, order_amount)
    return result


def validate_coupon(code: str, order_amount: Decimal, user_id=None) -> CouponValidationResult:
    """
    Check whether `code` can be applied to an order of `order_amount`.

    Args:
        code: Coupon code, any case
        order_amount: Amount the discount is computed on
        user_id: When given, a prior redemption by this user invalidates it

    Returns:
        CouponValidationResult (never raises)
    """
    try:
        result = check_coupon(find_coupon(code), code, Decimal(order_amount), user_id)
    except Exception:
        logger.exception(f"Unexpected error validating coupon {code!r}")
        return CouponValidationResult(
            is_valid=False,
            coupon_code=code,
            error_message=UNEXPECTED_ERROR_MESSAGE
        )

    if not result.is_valid:
        logger.info(f"Coupon {code!r} rejected: {result.error_message}")
    return result


def redeem_coupon(coupon_id: int, user, order, discount_amount: Decimal = None) -> CouponUsage:
    """
    Record a redemption of a coupon for a placed order.

    Must run inside transaction.atomic(). The coupon row is locked so the
    usage limit cannot be overrun by concurrent checkouts.

    Raises:
        NotFoundError: Coupon does not exist
        CouponError: Usage limit reached or already used by this user
    """
    try:
        coupon = Coupon.objects.select_for_update().get(id=coupon_id)
    except Coupon.DoesNotExist:
        raise NotFoundError("Coupon not found")

    if coupon.usage_limit_reached:
        raise CouponError("Coupon usage limit exceeded")

    if discount_amount is None:
        discount_amount = order.discount_amount

    try:
        with transaction.atomic():
            usage = CouponUsage.objects.create(
                coupon=coupon,
                user=user,
                order=order,
                discount_amount=discount_amount
            )
    except IntegrityError:
        raise CouponError("You have already used this coupon")

    Coupon.objects.filter(id=coupon.id).update(
        used_count=F('used_count') + 1,
        updated_at=timezone.now()
    )
    logger.info(f"Coupon {coupon.code} redeemed by user {user.pk} for order #{order.id}")
    return usage


@service_boundary('using coupon')
def use_coupon(coupon_id: int, user_id, order_id: int):
    """
    Redeem a coupon for an existing order owned by `user_id`.
    """
    from orders.models import Order

    with transaction.atomic():
        try:
            order = Order.objects.select_related('user').get(id=order_id, user_id=user_id)
        except Order.DoesNotExist:
            raise NotFoundError("Order not found")

        usage = redeem_coupon(coupon_id, order.user, order)

    return ServiceResult.ok(usage, "Coupon used successfully")


# =============================================================================
# Administration
# =============================================================================

def _raise_if(message: Optional[str]) -> None:
    if message:
        raise CouponError(message)


def _check_valid_from(valid_from) -> None:
    if timezone.localtime(valid_from).date() < timezone.localdate():
        raise CouponError("Valid from date cannot be in the past")


def _code_taken(code: str, exclude_id: Optional[int] = None) -> bool:
    queryset = Coupon.objects.filter(code__iexact=code.strip())
    if exclude_id is not None:
        queryset = queryset.exclude(id=exclude_id)
    return queryset.exists()


def _get_coupon(coupon_id: int, for_update: bool = False) -> Coupon:
    queryset = Coupon.objects.select_for_update() if for_update else Coupon.objects
    try:
        return queryset.get(id=coupon_id)
    except Coupon.DoesNotExist:
        raise NotFoundError("Coupon not found")


@service_boundary('creating coupon')
def create_coupon(data: Dict) -> Coupon:
    """
    Create a coupon from validated serializer data.

    Rules: code unique (case-insensitive), valid_from before valid_until,
    valid_from not before today, discount value in range for its type.
    """
    code = data['code'].strip().upper()
    if _code_taken(code):
        raise CouponError("Coupon code already exists")

    _raise_if(Coupon.date_range_error(data['valid_from'], data['valid_until']))
    _check_valid_from(data['valid_from'])
    _raise_if(Coupon.discount_error(data['discount_type'], data['discount_value']))

    coupon = Coupon.objects.create(
        code=code,
        name=data.get('name', ''),
        description=data.get('description', ''),
        discount_type=data['discount_type'],
        discount_value=data['discount_value'],
        minimum_order_amount=data.get('minimum_order_amount') or Decimal('0.00'),
        maximum_discount_amount=data.get('maximum_discount_amount'),
        usage_limit=data.get('usage_limit'),
        valid_from=data['valid_from'],
        valid_until=data['valid_until'],
        is_active=True
    )
    logger.info(f"Created coupon {coupon.code}")
    return coupon


@service_boundary('updating coupon')
@transaction.atomic
def update_coupon(coupon_id: int, data: Dict) -> Coupon:
    """
    Apply a partial update; only keys present in `data` change.

    The row is locked so a concurrent redemption cannot push used_count
    past a lowered usage_limit.
    """
    coupon = _get_coupon(coupon_id, for_update=True)

    code = data.get('code')
    if code and code.strip().upper() != coupon.code and _code_taken(code, exclude_id=coupon.id):
        raise CouponError("Coupon code already exists")

    _raise_if(Coupon.date_range_error(
        data.get('valid_from', coupon.valid_from),
        data.get('valid_until', coupon.valid_until)
    ))
    if 'valid_from' in data:
        _check_valid_from(data['valid_from'])

    if 'discount_type' in data or 'discount_value' in data:
        _raise_if(Coupon.discount_error(
            data.get('discount_type', coupon.discount_type),
            data.get('discount_value', coupon.discount_value)
        ))

    if 'usage_limit' in data:
        _raise_if(Coupon.usage_limit_error(data['usage_limit'], coupon.used_count))

    for field in (
        'code', 'name', 'description', 'discount_type', 'discount_value',
        'minimum_order_amount', 'maximum_discount_amount', 'usage_limit',
        'valid_from', 'valid_until',
    ):
        if field in data:
            setattr(coupon, field, data[field])

    coupon.save()
    logger.info(f"Updated coupon {coupon.code}")
    return coupon


@service_boundary('deleting coupon')
def delete_coupon(coupon_id: int):
    coupon = _get_coupon(coupon_id)

    if coupon.usages.exists():
        raise CouponError(
            "Cannot delete coupon that has been used. You can deactivate it instead."
        )

    coupon.delete()
    logger.info(f"Deleted coupon {coupon.code}")
    return ServiceResult.ok(message="Coupon deleted successfully")


@service_boundary('changing coupon state')
def set_coupon_active(coupon_id: int, is_active: bool) -> Coupon:
    coupon = _get_coupon(coupon_id)
    coupon.is_active = is_active
    coupon.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Coupon {coupon.code} {'activated' if is_active else 'deactivated'}")
    return coupon


def activate_coupon(coupon_id: int):
    return set_coupon_active(coupon_id, True)


def deactivate_coupon(coupon_id: int):
    return set_coupon_active(coupon_id, False)


def get_active_coupons():
    """Coupons that can currently be applied by somebody."""
    now = timezone.now()
    return Coupon.objects.filter(
        is_active=True,
        valid_from__lte=now,
        valid_until__gte=now,
    ).filter(
        Q(usage_limit__isnull=True) | Q(used_count__lt=F('usage_limit'))
    ).order_by('valid_until')
