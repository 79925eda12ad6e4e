"""
URL routing for notification API endpoints.
"""
from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('notifications/', views.NotificationListView.as_view(), name='notification-list'),
    path('notifications/unread-count/', views.UnreadCountView.as_view(), name='notification-unread-count'),
    path('notifications/read-all/', views.MarkAllAsReadView.as_view(), name='notification-read-all'),
    path('notifications/<int:pk>/read/', views.MarkAsReadView.as_view(), name='notification-read'),
]
