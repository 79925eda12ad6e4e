"""
Celery application for storefront background work.

Order side effects (notifications, emails) are dispatched here after
the order transaction commits.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('storefront')

# All CELERY_* settings are read from Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
