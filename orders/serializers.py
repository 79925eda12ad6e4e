"""
Serializers for order models.
"""
from rest_framework import serializers

from .models import Order, OrderAddress, OrderItem, OrderStatus, OrderStatusHistory, PaymentMethod


class OrderAddressSerializer(serializers.ModelSerializer):
    """Address snapshot; also validates addresses submitted at checkout."""
    class Meta:
        model = OrderAddress
        fields = [
            'first_name', 'last_name', 'phone_number', 'address_line1',
            'address_line2', 'city', 'state', 'postal_code', 'country'
        ]


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product_id', 'product_name', 'product_sku',
            'quantity', 'unit_price', 'total_price'
        ]


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    updated_by = serializers.CharField(source='updated_by.get_username', read_only=True, default=None)

    class Meta:
        model = OrderStatusHistory
        fields = ['status', 'comment', 'updated_by', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    """
    Full order with items, addresses and status history.
    Expects items and status_history to be prefetched.
    """
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    shipping_address = OrderAddressSerializer(read_only=True)
    billing_address = OrderAddressSerializer(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    is_cancellable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'user_id', 'status', 'payment_method',
            'subtotal', 'tax_amount', 'shipping_amount', 'discount_amount',
            'total_amount', 'coupon_code', 'tracking_number', 'notes',
            'shipping_address', 'billing_address', 'items', 'status_history',
            'is_cancellable', 'shipped_at', 'delivered_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Compact representation for order listings."""
    customer = serializers.CharField(source='user.get_username', read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer', 'status', 'payment_method',
            'total_amount', 'item_count', 'created_at'
        ]

    def get_item_count(self, obj):
        # Use prefetched items count if available
        if hasattr(obj, '_prefetched_objects_cache') and 'items' in obj._prefetched_objects_cache:
            return len(obj.items.all())
        return obj.items.count()


class OrderCreateSerializer(serializers.Serializer):
    """
    Checkout request for POST /orders/

    Request format:
    {
        "shipping_address": {"first_name": "Asha", ..., "state": "Karnataka"},
        "billing_address": {...},          (optional)
        "coupon_code": "WELCOME10",        (optional)
        "payment_method": "CASH_ON_DELIVERY"
    }
    """
    shipping_address = OrderAddressSerializer()
    billing_address = OrderAddressSerializer(required=False, allow_null=True)
    coupon_code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH_ON_DELIVERY
    )

    def validate_coupon_code(self, value):
        return value.strip() if value else None


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
