"""
Django Admin configuration for coupon models.
"""
from django.contrib import admin
from .models import Coupon, CouponUsage


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = [
        'code', 'discount_type', 'discount_value', 'used_count', 'usage_limit',
        'valid_from', 'valid_until', 'is_active'
    ]
    list_filter = ['discount_type', 'is_active', 'valid_until']
    search_fields = ['code', 'name']
    ordering = ['-created_at']
    readonly_fields = ['used_count', 'created_at', 'updated_at']


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ['id', 'coupon', 'user', 'order', 'discount_amount', 'used_at']
    search_fields = ['coupon__code', 'user__username', 'order__order_number']
    raw_id_fields = ['coupon', 'user', 'order']
    readonly_fields = ['coupon', 'user', 'order', 'discount_amount', 'used_at']
