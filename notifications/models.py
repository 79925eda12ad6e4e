"""
Notification Models - in-app messages shown in the user's inbox.
"""
from django.conf import settings
from django.db import models


class Notification(models.Model):

    class Type(models.TextChoices):
        ORDER_UPDATE = 'ORDER_UPDATE', 'Order Update'
        PAYMENT_UPDATE = 'PAYMENT_UPDATE', 'Payment Update'
        PROMOTIONAL = 'PROMOTIONAL', 'Promotional'
        SYSTEM = 'SYSTEM', 'System'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.SYSTEM)
    title = models.CharField(max_length=200)
    message = models.CharField(max_length=1000)
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications'
    )
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notificatio_user_id_3f9a0b_idx'),
        ]

    def __str__(self):
        return f"{self.title} -> {self.user}"
