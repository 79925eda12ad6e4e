"""
Serializers for notification models.
"""
from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'title', 'message', 'order_id', 'order_number',
            'is_read', 'read_at', 'created_at'
        ]
        read_only_fields = fields
