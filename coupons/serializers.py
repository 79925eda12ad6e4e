"""
Serializers for coupon models and requests.
"""
from rest_framework import serializers
from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    usage_limit_reached = serializers.BooleanField(read_only=True)

    class Meta:
        model = Coupon
        fields = [
            'id', 'code', 'name', 'description', 'discount_type', 'discount_value',
            'minimum_order_amount', 'maximum_discount_amount', 'usage_limit',
            'used_count', 'usage_limit_reached', 'valid_from', 'valid_until',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class CouponWriteSerializer(serializers.Serializer):
    """
    Request body for creating (all required fields) or partially
    updating (partial=True) a coupon. Uniqueness and date rules are
    checked by coupons.services.
    """
    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    discount_type = serializers.ChoiceField(choices=Coupon.DiscountType.choices)
    discount_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    minimum_order_amount = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, min_value=0
    )
    maximum_discount_amount = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, allow_null=True, min_value=0
    )
    usage_limit = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    valid_from = serializers.DateTimeField()
    valid_until = serializers.DateTimeField()

    def validate_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Coupon code is required")
        return value.upper()


class ValidateCouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    order_amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0)


class CouponValidationResultSerializer(serializers.Serializer):
    is_valid = serializers.BooleanField()
    coupon_code = serializers.CharField()
    discount_amount = serializers.DecimalField(max_digits=18, decimal_places=2)
    error_message = serializers.CharField(allow_null=True)
    coupon_id = serializers.IntegerField(allow_null=True)
    discount_type = serializers.CharField(allow_null=True)
    discount_value = serializers.DecimalField(max_digits=18, decimal_places=2, allow_null=True)
