"""
Django Admin configuration for order models.

Items and status history are read-only; status changes go through
orders.services so stock and history stay consistent.
"""
from django.contrib import admin
from .models import Order, OrderAddress, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'product_sku', 'quantity', 'unit_price', 'total_price']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'comment', 'updated_by', 'created_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'user', 'status', 'total_amount', 'payment_method', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['order_number', 'user__email', 'user__first_name', 'user__last_name']
    ordering = ['-created_at']
    readonly_fields = [
        'order_number', 'user', 'status', 'subtotal', 'tax_amount', 'shipping_amount',
        'discount_amount', 'total_amount', 'coupon', 'coupon_code',
        'shipping_address', 'billing_address', 'tracking_number', 'notes',
        'shipped_at', 'delivered_at',
        'created_at', 'updated_at'
    ]
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OrderAddress)
class OrderAddressAdmin(admin.ModelAdmin):
    list_display = ['id', 'first_name', 'last_name', 'city', 'state', 'postal_code']
    search_fields = ['first_name', 'last_name', 'city', 'postal_code']
