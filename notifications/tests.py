"""
Tests for notification delivery, order emails and the inbox API.
"""
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from notifications import emails
from notifications.models import Notification
from notifications.services import (
    mark_all_as_read,
    mark_as_read,
    send_order_status_notification,
    unread_count,
)
from notifications.tasks import (
    EMAIL_CONFIRMATION,
    EMAIL_DELIVERED,
    EMAIL_SHIPPED,
    send_order_email,
)
from orders.models import Order, OrderAddress, OrderStatus

User = get_user_model()


class NotificationFixtureMixin:

    def create_order(self, user, **overrides):
        address = OrderAddress.objects.create(
            first_name='Asha', last_name='Rao', phone_number='9876543210',
            address_line1='12 MG Road', city='Chennai', state='Tamil Nadu', postal_code='600001'
        )
        values = {
            'order_number': 'ORD1700000000555',
            'user': user,
            'subtotal': Decimal('400.00'),
            'tax_amount': Decimal('72.00'),
            'shipping_amount': Decimal('50.00'),
            'total_amount': Decimal('522.00'),
            'shipping_address': address,
            'billing_address': address,
        }
        values.update(overrides)
        return Order.objects.create(**values)


class NotificationServiceTestCase(NotificationFixtureMixin, TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='asha', password='secret123')
        self.order = self.create_order(self.user)

    def test_order_status_notification(self):
        notification = send_order_status_notification(
            self.user.id, self.order.id, OrderStatus.SHIPPED, "Your order status has been updated to Shipped"
        )

        self.assertEqual(notification.type, Notification.Type.ORDER_UPDATE)
        self.assertEqual(notification.title, "Order Shipped")
        self.assertEqual(notification.order, self.order)
        self.assertFalse(notification.is_read)

    def test_mark_as_read_only_own(self):
        notification = send_order_status_notification(self.user.id, self.order.id, 'PENDING', 'placed')
        other = User.objects.create_user(username='ravi', password='secret123')

        self.assertFalse(mark_as_read(other, notification.id))
        self.assertTrue(mark_as_read(self.user, notification.id))

        notification.refresh_from_db()
        self.assertTrue(notification.is_read)
        self.assertIsNotNone(notification.read_at)

    def test_mark_all_as_read(self):
        for _ in range(3):
            send_order_status_notification(self.user.id, self.order.id, 'PENDING', 'placed')

        self.assertEqual(unread_count(self.user), 3)
        self.assertEqual(mark_all_as_read(self.user), 3)
        self.assertEqual(unread_count(self.user), 0)


@override_settings(STORE_NAME='Test Electronics', FRONTEND_URL='https://shop.example.com')
class OrderEmailTaskTestCase(NotificationFixtureMixin, TestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username='asha', email='asha@example.com', password='secret123', first_name='Asha'
        )

    def test_confirmation_email(self):
        order = self.create_order(self.user)

        result = send_order_email.apply(args=(order.id, EMAIL_CONFIRMATION)).get()

        self.assertEqual(result['status'], 'success')
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['asha@example.com'])
        self.assertEqual(message.subject, 'Order Confirmation - ORD1700000000555')
        self.assertIn('₹522.00', message.body)
        self.assertIn('Test Electronics', message.body)

    def test_shipped_email_needs_tracking_number(self):
        order = self.create_order(self.user, status=OrderStatus.SHIPPED)

        result = send_order_email.apply(args=(order.id, EMAIL_SHIPPED)).get()

        self.assertEqual(result['status'], 'skipped')
        self.assertEqual(len(mail.outbox), 0)

    def test_shipped_email_with_tracking(self):
        order = self.create_order(self.user, status=OrderStatus.SHIPPED, tracking_number='TRK42')

        send_order_email.apply(args=(order.id, EMAIL_SHIPPED)).get()

        self.assertIn('TRK42', mail.outbox[0].body)

    def test_delivered_email_links_review_page(self):
        order = self.create_order(self.user, status=OrderStatus.DELIVERED)

        send_order_email.apply(args=(order.id, EMAIL_DELIVERED)).get()

        self.assertIn('https://shop.example.com/orders/ORD1700000000555', mail.outbox[0].body)

    def test_user_without_email_skipped(self):
        user = User.objects.create_user(username='noemail', password='secret123')
        order = self.create_order(user)

        result = send_order_email.apply(args=(order.id, EMAIL_CONFIRMATION)).get()

        self.assertEqual(result['status'], 'skipped')

    def test_missing_order(self):
        result = send_order_email.apply(args=(99999, EMAIL_CONFIRMATION)).get()

        self.assertEqual(result['status'], 'error')

    def test_mail_failure_raises_for_retry(self):
        with patch('notifications.emails.send_mail', side_effect=OSError('smtp down')):
            with self.assertRaises(OSError):
                emails.send_order_confirmation(
                    'asha@example.com', 'Asha', 'ORD1700000000555', Decimal('522')
                )


class NotificationAPITestCase(NotificationFixtureMixin, TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='asha', password='secret123')
        self.order = self.create_order(self.user)
        self.first = send_order_status_notification(self.user.id, self.order.id, 'PENDING', 'placed')
        self.second = send_order_status_notification(self.user.id, self.order.id, 'PROCESSING', 'processing')
        other = User.objects.create_user(username='ravi', password='secret123')
        Notification.objects.create(user=other, title='Sale', message='Big sale')

        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_inbox_newest_first(self):
        response = self.client.get('/api/notifications/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [n['id'] for n in response.data['results']]
        self.assertEqual(ids, [self.second.id, self.first.id])
        self.assertEqual(response.data['results'][0]['order_number'], 'ORD1700000000555')

    def test_unread_count_and_mark_read(self):
        self.assertEqual(self.client.get('/api/notifications/unread-count/').data['unread_count'], 2)

        response = self.client.post(f'/api/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(self.client.get('/api/notifications/unread-count/').data['unread_count'], 1)
        unread = self.client.get('/api/notifications/', {'unread': 'true'}).data['results']
        self.assertEqual([n['id'] for n in unread], [self.second.id])

    def test_cannot_read_foreign_notification(self):
        foreign = Notification.objects.exclude(user=self.user).get()

        response = self.client.post(f'/api/notifications/{foreign.id}/read/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_read_all(self):
        response = self.client.post('/api/notifications/read-all/')

        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(unread_count(self.user), 0)
