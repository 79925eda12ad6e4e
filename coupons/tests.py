"""
Tests for coupon validation, redemption and administration.

Test Cases:
1. Validation rules in order, with their messages
2. Discount calculation and caps
3. Redemption limits (per user and global)
4. Admin create/update/delete rules
5. Model validation behind the admin forms
6. REST endpoints and rate limiting of validation
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import CartItem, Category, Product
from coupons.models import Coupon, CouponUsage
from coupons.services import (
    calculate_discount,
    check_coupon,
    create_coupon,
    deactivate_coupon,
    delete_coupon,
    get_active_coupons,
    update_coupon,
    use_coupon,
    validate_coupon,
)
from orders.models import Order, OrderAddress
from orders.services import create_order

User = get_user_model()


def make_coupon(**overrides):
    now = timezone.now()
    values = {
        'code': 'SAVE10',
        'discount_type': Coupon.DiscountType.PERCENTAGE,
        'discount_value': Decimal('10'),
        'valid_from': now - timedelta(days=1),
        'valid_until': now + timedelta(days=10),
    }
    values.update(overrides)
    return Coupon.objects.create(**values)


def make_order(user, number='ORD1700000000100'):
    address = OrderAddress.objects.create(
        first_name='Asha', last_name='Rao', phone_number='9876543210',
        address_line1='12 MG Road', city='Pune', state='Maharashtra', postal_code='411001'
    )
    return Order.objects.create(
        order_number=number,
        user=user,
        subtotal=Decimal('1000.00'),
        tax_amount=Decimal('180.00'),
        total_amount=Decimal('1180.00'),
        shipping_address=address,
        billing_address=address
    )


class CouponValidationTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='asha', password='secret123')

    def test_valid_percentage_coupon(self):
        make_coupon()

        result = validate_coupon('save10', Decimal('1000.00'), self.user.pk)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.coupon_code, 'SAVE10')
        self.assertEqual(result.discount_amount, Decimal('100.00'))
        self.assertIsNone(result.error_message)

    def test_unknown_code(self):
        result = validate_coupon('MISSING', Decimal('100'))

        self.assertFalse(result.is_valid)
        self.assertEqual(result.error_message, "Invalid coupon code")
        self.assertEqual(result.discount_amount, Decimal('0.00'))

    def test_inactive_checked_before_dates(self):
        make_coupon(is_active=False, valid_until=timezone.now() - timedelta(hours=1))

        result = validate_coupon('SAVE10', Decimal('100'))

        self.assertEqual(result.error_message, "Coupon is not active")

    def test_not_yet_valid(self):
        start = timezone.now() + timedelta(days=3)
        make_coupon(valid_from=start, valid_until=start + timedelta(days=3))

        result = validate_coupon('SAVE10', Decimal('100'))

        expected = timezone.localtime(start).strftime('%d/%m/%Y')
        self.assertEqual(result.error_message, f"Coupon is valid from {expected}")

    def test_expired(self):
        make_coupon(valid_until=timezone.now() - timedelta(minutes=1))

        result = validate_coupon('SAVE10', Decimal('100'))

        self.assertEqual(result.error_message, "Coupon has expired")

    def test_minimum_order_amount(self):
        make_coupon(minimum_order_amount=Decimal('1500'))

        result = validate_coupon('SAVE10', Decimal('1499.99'))

        self.assertEqual(result.error_message, "Minimum order amount is ₹1500.00")

    def test_usage_limit(self):
        make_coupon(usage_limit=2, used_count=2)

        result = validate_coupon('SAVE10', Decimal('100'))

        self.assertEqual(result.error_message, "Coupon usage limit exceeded")

    def test_already_used_by_user(self):
        coupon = make_coupon()
        CouponUsage.objects.create(coupon=coupon, user=self.user, order=make_order(self.user))

        self.assertEqual(
            validate_coupon('SAVE10', Decimal('100'), self.user.pk).error_message,
            "You have already used this coupon"
        )
        # Anonymous validation skips the per-user check
        self.assertTrue(validate_coupon('SAVE10', Decimal('100')).is_valid)
        other = User.objects.create_user(username='ravi', password='secret123')
        self.assertTrue(validate_coupon('SAVE10', Decimal('100'), other.pk).is_valid)

    def test_unexpected_error_never_raises(self):
        with patch('coupons.services.find_coupon', side_effect=RuntimeError('db down')):
            result = validate_coupon('SAVE10', Decimal('100'))

        self.assertFalse(result.is_valid)
        self.assertEqual(result.error_message, "An unexpected error occurred")

    def test_check_at_boundary_instant(self):
        coupon = make_coupon()

        result = check_coupon(coupon, 'SAVE10', Decimal('100'), now=coupon.valid_until)

        self.assertTrue(result.is_valid)


class DiscountCalculationTestCase(TestCase):

    def test_percentage_capped_by_maximum(self):
        coupon = make_coupon(discount_value=Decimal('25'), maximum_discount_amount=Decimal('200'))
        self.assertEqual(calculate_discount(coupon, Decimal('2000')), Decimal('200.00'))
        self.assertEqual(calculate_discount(coupon, Decimal('400')), Decimal('100.00'))

    def test_percentage_rounds_to_paise(self):
        coupon = make_coupon(discount_value=Decimal('12.5'))
        # 12.5% of 0.99 = 0.12375
        self.assertEqual(calculate_discount(coupon, Decimal('0.99')), Decimal('0.12'))

    def test_fixed_amount_capped_by_order(self):
        coupon = make_coupon(
            discount_type=Coupon.DiscountType.FIXED_AMOUNT, discount_value=Decimal('500')
        )
        self.assertEqual(calculate_discount(coupon, Decimal('350.50')), Decimal('350.50'))
        self.assertEqual(calculate_discount(coupon, Decimal('1000')), Decimal('500.00'))


class CouponRedemptionTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='asha', password='secret123')
        self.order = make_order(self.user)

    def test_use_coupon_records_usage(self):
        coupon = make_coupon()

        result = use_coupon(coupon.id, self.user.pk, self.order.id)

        self.assertTrue(result.success, result.message)
        self.assertEqual(result.message, "Coupon used successfully")
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

    def test_second_use_by_same_user_fails(self):
        coupon = make_coupon()
        use_coupon(coupon.id, self.user.pk, self.order.id)
        second_order = make_order(self.user, 'ORD1700000000200')

        result = use_coupon(coupon.id, self.user.pk, second_order.id)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "You have already used this coupon")
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

    def test_global_limit_enforced(self):
        coupon = make_coupon(usage_limit=1, used_count=1)

        result = use_coupon(coupon.id, self.user.pk, self.order.id)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Coupon usage limit exceeded")

    def test_order_must_belong_to_user(self):
        coupon = make_coupon()
        other = User.objects.create_user(username='ravi', password='secret123')

        result = use_coupon(coupon.id, other.pk, self.order.id)

        self.assertTrue(result.not_found)


class CouponAdminServiceTestCase(TestCase):

    def setUp(self):
        now = timezone.now()
        self.data = {
            'code': ' new20 ',
            'name': 'New customer',
            'discount_type': Coupon.DiscountType.PERCENTAGE,
            'discount_value': Decimal('20'),
            'valid_from': now + timedelta(minutes=5),
            'valid_until': now + timedelta(days=30),
        }

    def test_create_normalises_code(self):
        result = create_coupon(self.data)

        self.assertTrue(result.success, result.message)
        self.assertEqual(result.data.code, 'NEW20')
        self.assertTrue(result.data.is_active)

    def test_duplicate_code_case_insensitive(self):
        make_coupon(code='NEW20')

        result = create_coupon(self.data)

        self.assertEqual(result.message, "Coupon code already exists")

    def test_dates_must_be_ordered(self):
        self.data['valid_until'] = self.data['valid_from']

        result = create_coupon(self.data)

        self.assertEqual(result.message, "Valid from date must be before valid until date")

    def test_start_not_in_past(self):
        self.data['valid_from'] = timezone.now() - timedelta(days=2)

        result = create_coupon(self.data)

        self.assertEqual(result.message, "Valid from date cannot be in the past")

    def test_percentage_over_100_rejected(self):
        self.data['discount_value'] = Decimal('101')

        result = create_coupon(self.data)

        self.assertEqual(
            result.message, "Percentage discount must be greater than 0 and at most 100"
        )

    def test_update_code_collision(self):
        make_coupon(code='TAKEN')
        coupon = make_coupon(code='MINE')

        result = update_coupon(coupon.id, {'code': 'taken'})

        self.assertEqual(result.message, "Coupon code already exists")

    def test_partial_update(self):
        coupon = make_coupon()

        result = update_coupon(coupon.id, {'name': 'Renamed', 'usage_limit': 5})

        self.assertTrue(result.success)
        coupon.refresh_from_db()
        self.assertEqual(coupon.name, 'Renamed')
        self.assertEqual(coupon.usage_limit, 5)
        self.assertEqual(coupon.discount_value, Decimal('10.00'))

    def test_update_usage_limit_below_used_count_rejected(self):
        coupon = make_coupon(usage_limit=10, used_count=5)

        result = update_coupon(coupon.id, {'usage_limit': 2})

        self.assertFalse(result.success)
        self.assertEqual(
            result.message, "Usage limit cannot be lower than the 5 times already used"
        )
        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_limit, 10)

        self.assertTrue(update_coupon(coupon.id, {'usage_limit': 5}).success)
        self.assertTrue(update_coupon(coupon.id, {'usage_limit': None}).success)

    def test_update_percentage_over_100_rejected(self):
        coupon = make_coupon()

        result = update_coupon(coupon.id, {'discount_value': Decimal('150')})

        self.assertEqual(
            result.message, "Percentage discount must be greater than 0 and at most 100"
        )

    def test_update_start_not_in_past(self):
        coupon = make_coupon()

        result = update_coupon(
            coupon.id, {'valid_from': timezone.now() - timedelta(days=3)}
        )
        self.assertEqual(result.message, "Valid from date cannot be in the past")

        # Untouched start dates in the past are fine
        self.assertTrue(update_coupon(coupon.id, {'name': 'Still running'}).success)

    def test_used_coupon_cannot_be_deleted(self):
        user = User.objects.create_user(username='asha', password='secret123')
        coupon = make_coupon()
        CouponUsage.objects.create(coupon=coupon, user=user, order=make_order(user))

        result = delete_coupon(coupon.id)

        self.assertFalse(result.success)
        self.assertEqual(
            result.message,
            "Cannot delete coupon that has been used. You can deactivate it instead."
        )
        self.assertTrue(Coupon.objects.filter(id=coupon.id).exists())

    def test_delete_unused(self):
        coupon = make_coupon()

        result = delete_coupon(coupon.id)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Coupon deleted successfully")
        self.assertTrue(delete_coupon(coupon.id).not_found)

    def test_active_coupons(self):
        usable = make_coupon(code='USABLE')
        make_coupon(code='USEDUP', usage_limit=1, used_count=1)
        make_coupon(code='OLD', valid_until=timezone.now() - timedelta(days=1))
        off = make_coupon(code='OFF')
        deactivate_coupon(off.id)

        self.assertEqual(list(get_active_coupons()), [usable])


class CouponModelCleanTestCase(TestCase):
    """Model validation used by the Django admin forms."""

    def build(self, **overrides):
        now = timezone.now()
        values = {
            'code': 'ADMIN50',
            'discount_type': Coupon.DiscountType.PERCENTAGE,
            'discount_value': Decimal('50'),
            'valid_from': now,
            'valid_until': now + timedelta(days=7),
        }
        values.update(overrides)
        return Coupon(**values)

    def test_valid_coupon_passes(self):
        self.build().full_clean()

    def test_percentage_over_100_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.build(discount_value=Decimal('150')).full_clean()

        self.assertEqual(
            ctx.exception.message_dict['discount_value'],
            ["Percentage discount must be greater than 0 and at most 100"]
        )

    def test_large_fixed_amount_allowed(self):
        self.build(
            discount_type=Coupon.DiscountType.FIXED_AMOUNT, discount_value=Decimal('150')
        ).full_clean()

    def test_dates_must_be_ordered(self):
        coupon = self.build()
        coupon.valid_until = coupon.valid_from

        with self.assertRaises(ValidationError) as ctx:
            coupon.full_clean()

        self.assertIn('valid_until', ctx.exception.message_dict)

    def test_usage_limit_below_used_count(self):
        with self.assertRaises(ValidationError) as ctx:
            self.build(usage_limit=2, used_count=3).full_clean()

        self.assertIn('usage_limit', ctx.exception.message_dict)


class CouponAPITestCase(TestCase):

    def setUp(self):
        self.customer = User.objects.create_user(username='asha', password='secret123')
        self.staff = User.objects.create_user(username='staff', password='secret123', is_staff=True)
        self.client = APIClient()
        self.client.force_authenticate(self.customer)
        self.coupon = make_coupon(minimum_order_amount=Decimal('500'))

    def test_validate_endpoint(self):
        response = self.client.post(
            '/api/coupons/validate/', {'code': 'save10', 'order_amount': '1000.00'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_valid'])
        self.assertEqual(response.data['discount_amount'], '100.00')

    def test_validate_endpoint_reports_failure(self):
        response = self.client.post(
            '/api/coupons/validate/', {'code': 'SAVE10', 'order_amount': '100'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_valid'])
        self.assertEqual(response.data['error_message'], "Minimum order amount is ₹500.00")

    @override_settings(RATE_LIMIT_ENABLED=True, COUPON_VALIDATE_RATE_LIMIT=20)
    def test_validate_is_rate_limited(self):
        redis_client = MagicMock()
        redis_client.incr.return_value = 21
        redis_client.ttl.return_value = 42

        with patch('core.rate_limiting.get_redis_client', return_value=redis_client):
            response = self.client.post(
                '/api/coupons/validate/', {'code': 'SAVE10', 'order_amount': '1000'}, format='json'
            )

        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response['Retry-After'], '42')
        redis_client.incr.assert_called_once_with(
            f'rate_limit:post:ValidateCouponView:user:{self.customer.pk}'
        )

    def test_active_coupons_public(self):
        response = APIClient().get('/api/coupons/active/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['code'] for c in response.data], ['SAVE10'])

    def test_by_code(self):
        self.assertEqual(self.client.get('/api/coupons/code/save10/').data['id'], self.coupon.id)
        self.assertEqual(
            self.client.get('/api/coupons/code/NOPE/').status_code, status.HTTP_404_NOT_FOUND
        )

    def test_admin_endpoints_require_staff(self):
        self.assertEqual(self.client.get('/api/coupons/').status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_create_and_deactivate(self):
        self.client.force_authenticate(self.staff)
        now = timezone.now()

        response = self.client.post('/api/coupons/', {
            'code': 'flat100',
            'discount_type': 'FIXED_AMOUNT',
            'discount_value': '100.00',
            'valid_from': (now + timedelta(hours=1)).isoformat(),
            'valid_until': (now + timedelta(days=7)).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'FLAT100')

        coupon_id = response.data['id']
        response = self.client.post(f'/api/coupons/{coupon_id}/deactivate/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

        response = self.client.post(f'/api/coupons/{coupon_id}/activate/')
        self.assertTrue(response.data['is_active'])

    def test_staff_create_rule_violation(self):
        self.client.force_authenticate(self.staff)
        now = timezone.now()

        response = self.client.post('/api/coupons/', {
            'code': 'SAVE10',
            'discount_type': 'PERCENTAGE',
            'discount_value': '5',
            'valid_from': (now + timedelta(hours=1)).isoformat(),
            'valid_until': (now + timedelta(days=7)).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], "Coupon code already exists")

    def test_staff_patch_and_delete(self):
        self.client.force_authenticate(self.staff)

        response = self.client.patch(
            f'/api/coupons/{self.coupon.id}/', {'discount_value': '15'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discount_value'], '15.00')

        response = self.client.delete(f'/api/coupons/{self.coupon.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            self.client.get(f'/api/coupons/{self.coupon.id}/').status_code,
            status.HTTP_404_NOT_FOUND
        )


class CouponCheckoutIntegrationTestCase(TestCase):
    """Coupon behaviour seen through checkout."""

    def setUp(self):
        self.user = User.objects.create_user(username='asha', password='secret123')
        category = Category.objects.create(name='Laptops')
        product = Product.objects.create(
            name='Ultrabook', price=Decimal('1000.00'), stock_quantity=5, category=category
        )
        CartItem.objects.create(
            user=self.user, product=product, quantity=1, price_at_time=product.price
        )

    def test_fixed_coupon_discount_on_gross(self):
        make_coupon(
            code='FLAT200',
            discount_type=Coupon.DiscountType.FIXED_AMOUNT,
            discount_value=Decimal('200')
        )

        result = create_order(self.user, {
            'first_name': 'Asha', 'last_name': 'Rao', 'phone_number': '9876543210',
            'address_line1': '12 MG Road', 'city': 'Pune', 'state': 'Maharashtra',
            'postal_code': '411001',
        }, coupon_code='FLAT200')

        self.assertTrue(result.success, result.message)
        # 1000 + 180 GST, free shipping, minus 200
        self.assertEqual(result.data.total_amount, Decimal('980.00'))
