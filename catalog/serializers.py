"""
Serializers for catalog models.
"""
from rest_framework import serializers
from .models import Category, Product, CartItem


class CategoryMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for nested category representation."""
    class Meta:
        model = Category
        fields = ['id', 'name']


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for Product model with nested category."""
    category = CategoryMinimalSerializer(read_only=True)
    is_out_of_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'sku', 'description', 'price',
            'stock_quantity', 'is_out_of_stock', 'category',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProductMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for nested representations."""
    class Meta:
        model = Product
        fields = ['id', 'name', 'price']


class CartItemSerializer(serializers.ModelSerializer):
    product = ProductMinimalSerializer(read_only=True)
    line_total = serializers.DecimalField(
        max_digits=18,
        decimal_places=2,
        read_only=True
    )

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'quantity', 'price_at_time', 'line_total', 'created_at']


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True)
    item_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=18, decimal_places=2)


class CartItemCreateSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
