"""
Management command to seed the database with sample data.

Generates:
- Electronics categories
- Products with SKUs, INR prices and stock
- A few sample coupons (percentage and fixed amount)

Usage:
    python manage.py seed_data
    python manage.py seed_data --products 200
    python manage.py seed_data --clear  # Clear catalog and coupons first
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone

from catalog.models import CartItem, Category, Product
from coupons.models import Coupon


PRODUCT_TEMPLATES = {
    'Smartphones': ['Android Phone', 'Phone Case', 'Screen Protector', 'Fast Charger'],
    'Laptops': ['Ultrabook', 'Gaming Laptop', 'Laptop Sleeve', 'Cooling Pad'],
    'Audio': ['Wireless Earbuds', 'Bluetooth Speaker', 'Over-Ear Headphones', 'Soundbar'],
    'Wearables': ['Smart Watch', 'Fitness Band', 'Watch Strap'],
    'Accessories': ['USB-C Cable', 'Power Bank', 'Wireless Mouse', 'Mechanical Keyboard'],
    'Cameras': ['Action Camera', 'Tripod', 'Memory Card 128GB', 'Webcam HD'],
}

ADJECTIVES = ['Pro', 'Lite', 'Max', 'Plus', 'Mini', 'Ultra', 'Neo', 'Prime']

COLORS = ['Black', 'White', 'Silver', 'Blue', 'Graphite', 'Red']

SAMPLE_COUPONS = [
    {
        'code': 'WELCOME10',
        'name': 'Welcome offer',
        'discount_type': Coupon.DiscountType.PERCENTAGE,
        'discount_value': Decimal('10'),
        'maximum_discount_amount': Decimal('500.00'),
    },
    {
        'code': 'FLAT200',
        'name': 'Flat ₹200 off',
        'discount_type': Coupon.DiscountType.FIXED_AMOUNT,
        'discount_value': Decimal('200.00'),
        'minimum_order_amount': Decimal('1500.00'),
    },
    {
        'code': 'FESTIVE25',
        'name': 'Festive sale',
        'discount_type': Coupon.DiscountType.PERCENTAGE,
        'discount_value': Decimal('25'),
        'maximum_discount_amount': Decimal('2000.00'),
        'usage_limit': 100,
    },
]


class Command(BaseCommand):
    help = 'Seed the database with sample categories, products and coupons'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing catalog, carts and coupons before seeding',
        )
        parser.add_argument(
            '--products',
            type=int,
            default=60,
            help='Number of products to create (default: 60)',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self._clear_data()

        self.stdout.write('Starting database seeding...')

        with transaction.atomic():
            categories = self._create_categories()
            self._create_products(options['products'], categories)
            self._create_coupons()

        self.stdout.write(self.style.SUCCESS('Database seeding completed successfully!'))

    def _clear_data(self):
        """Clear carts, products, categories and unused coupons."""
        try:
            with transaction.atomic():
                CartItem.objects.all().delete()
                Product.objects.all().delete()
                Category.objects.all().delete()
                Coupon.objects.filter(usages__isnull=True).delete()
        except ProtectedError:
            raise CommandError('Products referenced by orders cannot be cleared')

        self.stdout.write(self.style.WARNING('All existing data cleared.'))

    def _create_categories(self):
        categories = []
        for name in PRODUCT_TEMPLATES:
            category, created = Category.objects.get_or_create(name=name)
            categories.append(category)
            if created:
                self.stdout.write(f'  Created category: {name}')

        self.stdout.write(self.style.SUCCESS(f'Created {len(categories)} categories'))
        return categories

    def _create_products(self, count, categories):
        existing_names = set(Product.objects.values_list('name', flat=True))
        products = []

        self.stdout.write(f'Creating {count} products...')

        for i in range(count):
            category = categories[i % len(categories)]
            base_name = random.choice(PRODUCT_TEMPLATES[category.name])

            # Try up to 10 times to get a unique name
            for _ in range(10):
                name = f"{base_name} {random.choice(ADJECTIVES)} {random.choice(COLORS)}"
                if name not in existing_names:
                    break
            else:
                name = f"{base_name} #{i + 1}"
            existing_names.add(name)

            products.append(Product(
                name=name,
                sku=f"{category.name[:3].upper()}-{i + 1:04d}",
                description=f"{name} from our {category.name.lower()} range.",
                price=Decimal(random.randrange(1990, 999990, 10)) / 100,
                stock_quantity=random.randint(0, 100),
                low_stock_threshold=random.randint(3, 10),
                category=category,
                is_active=random.random() > 0.05  # 95% active
            ))

        Product.objects.bulk_create(products)
        self.stdout.write(self.style.SUCCESS(f'Created {len(products)} products'))
        return products

    def _create_coupons(self):
        now = timezone.now()
        created_count = 0

        for values in SAMPLE_COUPONS:
            defaults = dict(values, valid_from=now, valid_until=now + timedelta(days=90))
            code = defaults.pop('code')
            _, created = Coupon.objects.get_or_create(code=code, defaults=defaults)
            if created:
                created_count += 1
                self.stdout.write(f'  Created coupon: {code}')

        self.stdout.write(self.style.SUCCESS(f'Created {created_count} coupons'))
