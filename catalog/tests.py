"""
Tests for the catalog, cart and stock accessor.

Test Cases:
1. Conditional stock decrement and restore
2. Cart merging and stock checks
3. Product and cart endpoints
4. seed_data management command
"""
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import CartItem, Category, Product
from catalog.services import add_to_cart, clear_cart, remove_cart_item, update_cart_item
from catalog.stock import InsufficientStockError, decrement_stock, lock_products, restore_stock
from coupons.models import Coupon

User = get_user_model()


class CatalogFixtureMixin:

    def create_products(self):
        self.category = Category.objects.create(name='Accessories')
        self.cable = Product.objects.create(
            name='USB-C Cable', sku='ACC-001', price=Decimal('199.00'),
            stock_quantity=4, category=self.category
        )
        self.mouse = Product.objects.create(
            name='Wireless Mouse', sku='ACC-002', price=Decimal('749.50'),
            stock_quantity=0, category=self.category
        )


class StockTestCase(CatalogFixtureMixin, TestCase):

    def setUp(self):
        self.create_products()

    def test_decrement_within_stock(self):
        with transaction.atomic():
            product = lock_products([self.cable.id])[self.cable.id]
            decrement_stock(product, 3)

        self.cable.refresh_from_db()
        self.assertEqual(self.cable.stock_quantity, 1)

    def test_decrement_never_goes_negative(self):
        """
        Test: A stale in-memory product cannot oversell.

        Given: The row was drained after we loaded it
        When: Decrementing by the stale amount
        Then: InsufficientStockError with the fresh quantity
        """
        stale = Product.objects.get(id=self.cable.id)
        Product.objects.filter(id=self.cable.id).update(stock_quantity=1)

        with self.assertRaises(InsufficientStockError) as context:
            decrement_stock(stale, 2)

        self.assertEqual(context.exception.available, 1)
        self.assertEqual(str(context.exception), "Insufficient stock for USB-C Cable")
        self.cable.refresh_from_db()
        self.assertEqual(self.cable.stock_quantity, 1)

    def test_restore(self):
        restore_stock([(self.mouse.id, 2), (self.cable.id, 1)])

        self.cable.refresh_from_db()
        self.mouse.refresh_from_db()
        self.assertEqual(self.cable.stock_quantity, 5)
        self.assertEqual(self.mouse.stock_quantity, 2)


class CartServiceTestCase(CatalogFixtureMixin, TestCase):

    def setUp(self):
        self.create_products()
        self.user = User.objects.create_user(username='asha', password='secret123')

    def test_add_merges_lines(self):
        add_to_cart(self.user, self.cable.id, 1)
        result = add_to_cart(self.user, self.cable.id, 2)

        self.assertTrue(result.success)
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 1)
        self.assertEqual(result.data.quantity, 3)
        self.assertEqual(result.data.price_at_time, Decimal('199.00'))

    def test_add_beyond_stock(self):
        result = add_to_cart(self.user, self.cable.id, 5)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Only 4 units of USB-C Cable available")

    def test_add_unknown_product(self):
        result = add_to_cart(self.user, 99999, 1)

        self.assertTrue(result.not_found)

    def test_update_and_remove(self):
        item = add_to_cart(self.user, self.cable.id, 1).data

        self.assertEqual(update_cart_item(self.user, item.id, 4).data.quantity, 4)
        self.assertFalse(update_cart_item(self.user, item.id, 0).success)
        self.assertTrue(remove_cart_item(self.user, item.id).success)
        self.assertTrue(remove_cart_item(self.user, item.id).not_found)

    def test_clear(self):
        add_to_cart(self.user, self.cable.id, 1)

        self.assertEqual(clear_cart(self.user).data, 1)
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())


class CatalogAPITestCase(CatalogFixtureMixin, TestCase):

    def setUp(self):
        self.create_products()
        self.user = User.objects.create_user(username='asha', password='secret123')
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_products_public_and_filterable(self):
        Product.objects.create(
            name='Hidden', price=Decimal('10.00'), stock_quantity=5,
            category=self.category, is_active=False
        )

        response = APIClient().get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = APIClient().get('/api/products/', {'in_stock': 'true'})
        self.assertEqual([p['name'] for p in response.data['results']], ['USB-C Cable'])

    def test_cart_flow(self):
        response = self.client.post('/api/cart/', {'product_id': self.cable.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item_id = response.data['id']

        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['item_count'], 2)
        self.assertEqual(response.data['subtotal'], '398.00')

        response = self.client.patch(f'/api/cart/{item_id}/', {'quantity': 3}, format='json')
        self.assertEqual(response.data['quantity'], 3)

        response = self.client.delete('/api/cart/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get('/api/cart/').data['item_count'], 0)

    def test_out_of_stock_add_rejected(self):
        response = self.client.post('/api/cart/', {'product_id': self.mouse.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], "Only 0 units of Wireless Mouse available")


class SeedDataCommandTestCase(TestCase):

    def test_seed_creates_catalog_and_coupons(self):
        out = StringIO()

        call_command('seed_data', '--products', '12', stdout=out)

        self.assertEqual(Product.objects.count(), 12)
        self.assertEqual(Category.objects.count(), 6)
        self.assertEqual(
            set(Coupon.objects.values_list('code', flat=True)),
            {'WELCOME10', 'FLAT200', 'FESTIVE25'}
        )
        self.assertIn('Database seeding completed successfully!', out.getvalue())

    def test_seed_is_repeatable(self):
        call_command('seed_data', '--products', '6', stdout=StringIO())
        call_command('seed_data', '--products', '6', stdout=StringIO())

        self.assertEqual(Coupon.objects.count(), 3)
        self.assertEqual(Category.objects.count(), 6)
        self.assertEqual(Product.objects.count(), 12)
