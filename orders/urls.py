"""
URL routing for order API endpoints.
"""
from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('orders/', views.OrderListCreateView.as_view(), name='order-list'),
    path('orders/mine/', views.UserOrdersView.as_view(), name='user-orders'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
    path(
        'orders/number/<str:order_number>/',
        views.OrderByNumberView.as_view(),
        name='order-by-number'
    ),
    path('orders/<int:pk>/status/', views.OrderStatusUpdateView.as_view(), name='order-status'),
    path('orders/<int:pk>/cancel/', views.OrderCancelView.as_view(), name='order-cancel'),
]
