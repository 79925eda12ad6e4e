"""
URL routing for coupon API endpoints.
"""
from django.urls import path
from . import views

app_name = 'coupons'

urlpatterns = [
    path('coupons/', views.CouponListCreateView.as_view(), name='coupon-list'),
    path('coupons/active/', views.ActiveCouponListView.as_view(), name='coupon-active'),
    path('coupons/validate/', views.ValidateCouponView.as_view(), name='coupon-validate'),
    path('coupons/code/<str:code>/', views.CouponByCodeView.as_view(), name='coupon-by-code'),
    path('coupons/<int:pk>/', views.CouponDetailView.as_view(), name='coupon-detail'),
    path('coupons/<int:pk>/activate/', views.CouponActivateView.as_view(), name='coupon-activate'),
    path('coupons/<int:pk>/deactivate/', views.CouponDeactivateView.as_view(), name='coupon-deactivate'),
]
