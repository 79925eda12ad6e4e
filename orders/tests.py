"""
Tests for checkout and the order lifecycle.

Test Cases:
1. Pricing rules (GST rounding, shipping table, discount clamp)
2. Status transition table
3. Checkout totals, stock deduction, snapshots and cart clearing
4. All-or-nothing checkout on stock, coupon and unexpected failures
5. Post-commit notification and email delivery
6. Status updates, cancellation and restocking
7. REST endpoints
8. Admin keeps order fields read-only
9. Concurrent checkout race condition prevention (PostgreSQL only)
"""
import re
import threading
from datetime import timedelta
from decimal import Decimal
from unittest import skipUnless
from unittest.mock import patch

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core import mail
from django.db import connection
from django.test import TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import CartItem, Category, Product
from core.results import UNEXPECTED_ERROR_MESSAGE
from coupons.models import Coupon, CouponUsage
from notifications.models import Notification
from orders.admin import OrderAdmin
from orders.models import Order, OrderStatus, OrderStatusHistory
from orders.pricing import calculate_shipping, calculate_tax, calculate_total
from orders.services import (
    cancel_order,
    create_order,
    generate_order_number,
    get_order,
    get_order_by_number,
    update_order_status,
)
from orders.state_machine import allowed_transitions, can_transition, is_terminal

User = get_user_model()

ADDRESS = {
    'first_name': 'Asha',
    'last_name': 'Rao',
    'phone_number': '9876543210',
    'address_line1': '12 MG Road',
    'city': 'Bengaluru',
    'state': 'Karnataka',
    'postal_code': '560001',
}


class OrderFixtureMixin:
    """Shared catalog, customer and cart setup."""

    def create_catalog(self):
        self.category = Category.objects.create(name='Audio')
        self.headphones = Product.objects.create(
            name='Wired Headphones',
            sku='AUD-001',
            price=Decimal('100.00'),
            stock_quantity=10,
            category=self.category
        )
        self.speaker = Product.objects.create(
            name='Bluetooth Speaker',
            sku='AUD-002',
            price=Decimal('250.00'),
            stock_quantity=5,
            category=self.category
        )

    def create_customer(self, username='asha'):
        return User.objects.create_user(
            username=username,
            email=f'{username}@example.com',
            password='secret123',
            first_name='Asha',
            last_name='Rao'
        )

    def add_to_cart(self, user, product, quantity):
        return CartItem.objects.create(
            user=user,
            product=product,
            quantity=quantity,
            price_at_time=product.price
        )

    def create_coupon(self, **overrides):
        now = timezone.now()
        values = {
            'code': 'SAVE10',
            'name': 'Save 10%',
            'discount_type': Coupon.DiscountType.PERCENTAGE,
            'discount_value': Decimal('10'),
            'valid_from': now - timedelta(days=1),
            'valid_until': now + timedelta(days=30),
        }
        values.update(overrides)
        return Coupon.objects.create(**values)


class PricingTestCase(TestCase):

    def test_tax_uses_bankers_rounding(self):
        """0.25 * 18% = 0.045 rounds to the even paisa."""
        self.assertEqual(calculate_tax(Decimal('0.25')), Decimal('0.04'))
        self.assertEqual(calculate_tax(Decimal('200.00')), Decimal('36.00'))

    def test_shipping_free_from_threshold(self):
        self.assertEqual(calculate_shipping(Decimal('500.00'), 'Delhi'), Decimal('0.00'))

    def test_shipping_by_state_case_insensitive(self):
        self.assertEqual(calculate_shipping(Decimal('100'), '  tamil NADU '), Decimal('50.00'))
        self.assertEqual(calculate_shipping(Decimal('100'), 'Maharashtra'), Decimal('40.00'))

    def test_shipping_default_rate(self):
        self.assertEqual(calculate_shipping(Decimal('100'), 'Kerala'), Decimal('60.00'))
        self.assertEqual(calculate_shipping(Decimal('100'), None), Decimal('60.00'))

    def test_worked_examples(self):
        subtotal = Decimal('400')
        tax = calculate_tax(subtotal)
        shipping = calculate_shipping(subtotal, 'Delhi')
        self.assertEqual((tax, shipping), (Decimal('72.00'), Decimal('45.00')))
        self.assertEqual(calculate_total(subtotal, tax, shipping), Decimal('517.00'))

        subtotal = Decimal('1000')
        tax = calculate_tax(subtotal)
        shipping = calculate_shipping(subtotal, 'Karnataka')
        self.assertEqual(calculate_total(subtotal, tax, shipping), Decimal('1180.00'))

    def test_total_never_negative(self):
        total = calculate_total(
            Decimal('10.00'), Decimal('1.80'), Decimal('60.00'), Decimal('500.00')
        )
        self.assertEqual(total, Decimal('0.00'))


class StateMachineTestCase(TestCase):

    def test_forward_path_is_legal(self):
        path = [
            OrderStatus.PENDING, OrderStatus.PROCESSING,
            OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.RETURNED
        ]
        for current, requested in zip(path, path[1:]):
            self.assertTrue(can_transition(current, requested), f"{current} -> {requested}")

    def test_skipping_and_backwards_are_illegal(self):
        self.assertFalse(can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED))
        self.assertFalse(can_transition(OrderStatus.SHIPPED, OrderStatus.PROCESSING))
        self.assertFalse(can_transition(OrderStatus.SHIPPED, OrderStatus.CANCELLED))

    def test_terminal_statuses(self):
        self.assertTrue(is_terminal(OrderStatus.CANCELLED))
        self.assertTrue(is_terminal(OrderStatus.RETURNED))
        self.assertFalse(is_terminal(OrderStatus.DELIVERED))
        self.assertEqual(allowed_transitions('UNKNOWN'), frozenset())


class CreateOrderTestCase(OrderFixtureMixin, TestCase):
    """Test cases for checkout transaction logic."""

    def setUp(self):
        self.create_catalog()
        self.customer = self.create_customer()

    def test_order_placed_with_sufficient_stock(self):
        """
        Test: Order is placed when every cart line has enough stock.

        Given: 2 headphones in the cart, shipping to Karnataka
        When: Placing the order
        Then: Totals include GST and state shipping, stock is deducted,
              the cart is emptied and one history row is written
        """
        self.add_to_cart(self.customer, self.headphones, 2)

        result = create_order(self.customer, ADDRESS)

        self.assertTrue(result.success, result.message)
        order = result.data
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.subtotal, Decimal('200.00'))
        self.assertEqual(order.tax_amount, Decimal('36.00'))
        self.assertEqual(order.shipping_amount, Decimal('40.00'))
        self.assertEqual(order.discount_amount, Decimal('0.00'))
        self.assertEqual(order.total_amount, Decimal('276.00'))
        self.assertEqual(order.total_amount, order.computed_total)

        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 8)
        self.assertFalse(CartItem.objects.filter(user=self.customer).exists())

        history = list(order.status_history.all())
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].status, OrderStatus.PENDING)
        self.assertEqual(history[0].comment, "Order placed successfully")

    def test_items_snapshot_current_price(self):
        """Lines are priced at the product's price at checkout, not when added."""
        self.add_to_cart(self.customer, self.headphones, 1)
        Product.objects.filter(id=self.headphones.id).update(price=Decimal('120.00'))

        order = create_order(self.customer, ADDRESS).data

        item = order.items.get()
        self.assertEqual(item.product_name, 'Wired Headphones')
        self.assertEqual(item.product_sku, 'AUD-001')
        self.assertEqual(item.unit_price, Decimal('120.00'))
        self.assertEqual(item.total_price, Decimal('120.00'))

    def test_free_shipping_over_threshold(self):
        self.add_to_cart(self.customer, self.speaker, 2)

        order = create_order(self.customer, ADDRESS).data

        self.assertEqual(order.shipping_amount, Decimal('0.00'))
        self.assertEqual(order.total_amount, Decimal('590.00'))

    def test_order_number_format(self):
        self.assertRegex(generate_order_number(), r'^ORD\d{13,}$')

    def test_billing_defaults_to_shipping(self):
        self.add_to_cart(self.customer, self.headphones, 1)

        order = create_order(self.customer, ADDRESS).data

        self.assertEqual(order.billing_address_id, order.shipping_address_id)
        self.assertEqual(order.shipping_address.country, 'India')

    def test_empty_cart_fails(self):
        result = create_order(self.customer, ADDRESS)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Cart is empty")
        self.assertEqual(Order.objects.count(), 0)

    def test_insufficient_stock_changes_nothing(self):
        """
        Test: One short line fails the whole order.

        Given: Enough headphones but only 5 speakers
        When: Ordering 6 speakers alongside headphones
        Then: No order, no stock change, cart untouched
        """
        self.add_to_cart(self.customer, self.headphones, 3)
        self.add_to_cart(self.customer, self.speaker, 6)

        result = create_order(self.customer, ADDRESS)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Insufficient stock for Bluetooth Speaker")
        self.assertEqual(Order.objects.count(), 0)

        self.headphones.refresh_from_db()
        self.speaker.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 10)
        self.assertEqual(self.speaker.stock_quantity, 5)
        self.assertEqual(CartItem.objects.filter(user=self.customer).count(), 2)

    def test_exact_stock_succeeds(self):
        self.add_to_cart(self.customer, self.speaker, 5)

        result = create_order(self.customer, ADDRESS)

        self.assertTrue(result.success)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock_quantity, 0)

    def test_inactive_product_fails(self):
        self.add_to_cart(self.customer, self.headphones, 1)
        Product.objects.filter(id=self.headphones.id).update(is_active=False)

        result = create_order(self.customer, ADDRESS)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Wired Headphones is no longer available")

    def test_coupon_applied_and_redeemed(self):
        """
        Test: A valid coupon discounts the gross amount and is redeemed once.

        Given: 10% coupon, order gross of 276.00
        When: Placing the order with the lower-cased code
        Then: Discount 27.60, usage recorded, used_count incremented
        """
        coupon = self.create_coupon()
        self.add_to_cart(self.customer, self.headphones, 2)

        result = create_order(self.customer, ADDRESS, coupon_code='save10')

        self.assertTrue(result.success, result.message)
        order = result.data
        self.assertEqual(order.discount_amount, Decimal('27.60'))
        self.assertEqual(order.total_amount, Decimal('248.40'))
        self.assertEqual(order.coupon_code, 'SAVE10')

        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)
        usage = CouponUsage.objects.get(coupon=coupon)
        self.assertEqual(usage.order_id, order.id)
        self.assertEqual(usage.discount_amount, Decimal('27.60'))

    def test_invalid_coupon_fails_order(self):
        self.add_to_cart(self.customer, self.headphones, 2)

        result = create_order(self.customer, ADDRESS, coupon_code='NOPE')

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Invalid coupon code")
        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 10)

    def test_coupon_reuse_fails_order(self):
        self.create_coupon()
        self.add_to_cart(self.customer, self.headphones, 1)
        self.assertTrue(create_order(self.customer, ADDRESS, coupon_code='SAVE10').success)

        self.add_to_cart(self.customer, self.headphones, 1)
        result = create_order(self.customer, ADDRESS, coupon_code='SAVE10')

        self.assertFalse(result.success)
        self.assertEqual(result.message, "You have already used this coupon")
        self.assertEqual(Order.objects.count(), 1)

    def test_order_number_regenerated_on_collision(self):
        self.add_to_cart(self.customer, self.headphones, 1)
        first = create_order(self.customer, ADDRESS).data

        self.add_to_cart(self.customer, self.headphones, 1)
        with patch(
            'orders.services.generate_order_number',
            side_effect=[first.order_number, 'ORD1700000000123']
        ):
            second = create_order(self.customer, ADDRESS).data

        self.assertEqual(second.order_number, 'ORD1700000000123')

    def test_unexpected_error_is_opaque_and_rolls_back(self):
        self.add_to_cart(self.customer, self.headphones, 1)

        with patch('orders.services.decrement_stock', side_effect=RuntimeError('db exploded')):
            result = create_order(self.customer, ADDRESS)

        self.assertFalse(result.success)
        self.assertEqual(result.message, UNEXPECTED_ERROR_MESSAGE)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderStatusHistory.objects.count(), 0)
        self.assertTrue(CartItem.objects.filter(user=self.customer).exists())


class OrderEventsTestCase(OrderFixtureMixin, TestCase):
    """Notifications and emails are delivered only after commit."""

    def setUp(self):
        self.create_catalog()
        self.customer = self.create_customer()
        self.add_to_cart(self.customer, self.headphones, 1)

    def test_confirmation_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            order = create_order(self.customer, ADDRESS).data
            self.assertEqual(Notification.objects.count(), 0)

        self.assertEqual(len(callbacks), 1)
        notification = Notification.objects.get(user=self.customer)
        self.assertEqual(notification.order_id, order.id)
        self.assertEqual(notification.title, "Order Pending")
        self.assertEqual(notification.message, "Your order has been placed successfully!")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(order.order_number, mail.outbox[0].subject)

    def test_failed_order_publishes_nothing(self):
        CartItem.objects.all().delete()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            create_order(self.customer, ADDRESS)

        self.assertEqual(len(callbacks), 0)
        self.assertEqual(Notification.objects.count(), 0)

    def test_queue_failure_does_not_fail_order(self):
        with patch(
            'orders.events.deliver_order_status_notification.delay',
            side_effect=ConnectionError('broker down')
        ):
            with self.captureOnCommitCallbacks(execute=True):
                result = create_order(self.customer, ADDRESS)

        self.assertTrue(result.success)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(Notification.objects.count(), 0)
        # Email is queued independently of the notification
        self.assertEqual(len(mail.outbox), 1)


class OrderLifecycleTestCase(OrderFixtureMixin, TestCase):
    """Status updates and cancellation."""

    def setUp(self):
        self.create_catalog()
        self.customer = self.create_customer()
        self.staff = User.objects.create_user(username='staff', password='secret123', is_staff=True)
        self.add_to_cart(self.customer, self.headphones, 3)
        self.order = create_order(self.customer, ADDRESS).data

    def test_ship_sets_tracking_and_timestamp(self):
        update_order_status(self.order.id, OrderStatus.PROCESSING, actor=self.staff)

        result = update_order_status(
            self.order.id, OrderStatus.SHIPPED, tracking_number='TRK123', actor=self.staff
        )

        self.assertTrue(result.success, result.message)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.SHIPPED)
        self.assertEqual(self.order.tracking_number, 'TRK123')
        self.assertIsNotNone(self.order.shipped_at)

        latest = self.order.status_history.last()
        self.assertEqual(latest.comment, "Order status updated to Shipped")
        self.assertEqual(latest.updated_by, self.staff)

    def test_shipped_and_delivered_emails(self):
        update_order_status(self.order.id, OrderStatus.PROCESSING)
        with self.captureOnCommitCallbacks(execute=True):
            update_order_status(self.order.id, OrderStatus.SHIPPED, tracking_number='TRK9')
        with self.captureOnCommitCallbacks(execute=True):
            update_order_status(self.order.id, OrderStatus.DELIVERED)

        subjects = [message.subject for message in mail.outbox]
        self.assertIn(f"Your order {self.order.order_number} has shipped", subjects)
        self.assertIn(f"Your order {self.order.order_number} has been delivered", subjects)
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.delivered_at)

    def test_illegal_transition_changes_nothing(self):
        result = update_order_status(self.order.id, OrderStatus.DELIVERED)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Invalid status transition from Pending to Delivered")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertEqual(self.order.status_history.count(), 1)

    def test_missing_order_is_not_found(self):
        result = update_order_status(99999, OrderStatus.PROCESSING)

        self.assertFalse(result.success)
        self.assertTrue(result.not_found)
        self.assertEqual(result.message, "Order not found")

    def test_cancel_restores_stock(self):
        """
        Test: Customer cancellation puts units back.

        Given: 3 headphones ordered (stock 7)
        When: The customer cancels
        Then: Stock is back to 10 and history records the cancellation
        """
        with self.captureOnCommitCallbacks(execute=True):
            result = cancel_order(self.order.id, self.customer)

        self.assertTrue(result.success, result.message)
        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 10)

        latest = self.order.status_history.last()
        self.assertEqual(latest.status, OrderStatus.CANCELLED)
        self.assertEqual(latest.comment, "Order cancelled by customer")
        self.assertTrue(
            Notification.objects.filter(message="Your order has been cancelled").exists()
        )

    def test_cannot_cancel_shipped_order(self):
        update_order_status(self.order.id, OrderStatus.PROCESSING)
        update_order_status(self.order.id, OrderStatus.SHIPPED)

        result = cancel_order(self.order.id, self.customer)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Order cannot be cancelled at this stage")
        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 7)

    def test_cannot_cancel_someone_elses_order(self):
        other = self.create_customer('ravi')

        result = cancel_order(self.order.id, other)

        self.assertFalse(result.success)
        self.assertTrue(result.not_found)

    def test_staff_cancel_restocks_once(self):
        update_order_status(self.order.id, OrderStatus.CANCELLED)
        second = update_order_status(self.order.id, OrderStatus.CANCELLED)

        self.assertFalse(second.success)
        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 10)

    def test_return_does_not_restock(self):
        for new_status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.RETURNED):
            self.assertTrue(update_order_status(self.order.id, new_status).success)

        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 7)

    def test_order_visibility(self):
        other = self.create_customer('ravi')

        self.assertTrue(get_order(self.order.id, user=self.customer).success)
        self.assertTrue(get_order(self.order.id, user=self.staff).success)
        self.assertTrue(get_order(self.order.id, user=other).not_found)
        self.assertTrue(get_order_by_number(self.order.order_number, user=self.customer).success)

    def test_history_is_append_only(self):
        entry = self.order.status_history.first()
        entry.comment = 'edited'

        with self.assertRaises(ValueError):
            entry.save()
        with self.assertRaises(ValueError):
            entry.delete()


class OrderAPITestCase(OrderFixtureMixin, TestCase):

    def setUp(self):
        self.create_catalog()
        self.customer = self.create_customer()
        self.staff = User.objects.create_user(username='staff', password='secret123', is_staff=True)
        self.client = APIClient()
        self.client.force_authenticate(self.customer)

    def place_order(self, quantity=1):
        self.add_to_cart(self.customer, self.headphones, quantity)
        return create_order(self.customer, ADDRESS).data

    def test_checkout_endpoint(self):
        self.add_to_cart(self.customer, self.headphones, 2)

        response = self.client.post(
            '/api/orders/',
            {'shipping_address': ADDRESS, 'payment_method': 'CASH_ON_DELIVERY'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(re.match(r'^ORD\d+$', response.data['order_number']))
        self.assertEqual(response.data['total_amount'], '276.00')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(len(response.data['status_history']), 1)

    def test_checkout_empty_cart_returns_400(self):
        response = self.client.post('/api/orders/', {'shipping_address': ADDRESS}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'success': False, 'message': 'Cart is empty'})

    def test_checkout_requires_address(self):
        self.add_to_cart(self.customer, self.headphones, 1)

        response = self.client.post('/api/orders/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shipping_address', response.data['errors'])

    def test_list_requires_staff(self):
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_list_filters(self):
        small = self.place_order(1)
        large = self.place_order(4)
        update_order_status(large.id, OrderStatus.PROCESSING)
        self.client.force_authenticate(self.staff)

        response = self.client.get('/api/orders/', {'status': 'processing'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data['results']], [large.id])

        response = self.client.get('/api/orders/', {'max_amount': '200'})
        self.assertEqual([o['id'] for o in response.data['results']], [small.id])

        response = self.client.get('/api/orders/', {'sort_by': 'amount', 'sort_desc': 'false'})
        self.assertEqual([o['id'] for o in response.data['results']], [small.id, large.id])

        response = self.client.get('/api/orders/', {'search': 'asha@example'})
        self.assertEqual(response.data['count'], 2)

    def test_user_orders(self):
        order = self.place_order()
        other = self.create_customer('ravi')
        self.add_to_cart(other, self.speaker, 1)
        create_order(other, ADDRESS)

        response = self.client.get('/api/orders/mine/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data['results']], [order.id])

    def test_detail_hidden_from_other_customers(self):
        order = self.place_order()
        self.client.force_authenticate(self.create_customer('ravi'))

        response = self.client.get(f'/api/orders/{order.id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Order not found')

    def test_detail_by_number(self):
        order = self.place_order()

        response = self.client.get(f'/api/orders/number/{order.order_number}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], order.id)

    def test_status_update_staff_only(self):
        order = self.place_order()

        response = self.client.put(f'/api/orders/{order.id}/status/', {'status': 'PROCESSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.staff)
        response = self.client.put(f'/api/orders/{order.id}/status/', {'status': 'PROCESSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'PROCESSING')

        response = self.client.put(f'/api/orders/{order.id}/status/', {'status': 'PENDING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data['message'], 'Invalid status transition from Processing to Pending'
        )

    def test_cancel_endpoint(self):
        order = self.place_order(2)

        response = self.client.post(f'/api/orders/{order.id}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'CANCELLED')
        self.headphones.refresh_from_db()
        self.assertEqual(self.headphones.stock_quantity, 10)

    def test_requires_authentication(self):
        response = APIClient().get('/api/orders/mine/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class OrderAdminTestCase(TestCase):

    def test_tracking_and_notes_are_read_only(self):
        """
        Test: Shipping details cannot be edited from the admin.

        Given: The registered order admin
        When: Its read-only fields are listed
        Then: Tracking number and notes are read-only like the status fields
        """
        readonly = OrderAdmin(Order, admin.site).get_readonly_fields(request=None)

        for field in ('tracking_number', 'notes', 'status', 'shipped_at'):
            self.assertIn(field, readonly)


@skipUnless(connection.vendor == 'postgresql', 'Row locking needs PostgreSQL')
class ConcurrentOrderTestCase(OrderFixtureMixin, TransactionTestCase):
    """
    Test concurrent checkouts to verify select_for_update works.
    Uses TransactionTestCase for proper multi-threading support.
    """

    def setUp(self):
        self.category = Category.objects.create(name='Limited')
        self.product = Product.objects.create(
            name='Limited Stock Product',
            price=Decimal('50.00'),
            stock_quantity=10,
            category=self.category
        )
        self.buyers = [self.create_customer('buyer1'), self.create_customer('buyer2')]
        for buyer in self.buyers:
            self.add_to_cart(buyer, self.product, 8)

    def test_concurrent_orders_no_overselling(self):
        """
        Test: Concurrent checkouts don't oversell stock.

        Given: 10 units in stock
        When: Two customers check out 8 units each at the same time
        Then: Exactly one order is placed and 2 units remain
        """
        results = {}

        def place_order(buyer):
            try:
                results[buyer.username] = create_order(buyer, ADDRESS).success
            finally:
                connection.close()

        threads = [threading.Thread(target=place_order, args=(buyer,)) for buyer in self.buyers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.product.refresh_from_db()
        self.assertEqual(sum(results.values()), 1)
        self.assertEqual(self.product.stock_quantity, 2)
        self.assertEqual(Order.objects.count(), 1)
