"""
Order API Views.

Implements:
- GET /orders/ - Staff order list with filters and sorting
- POST /orders/ - Place an order from the current cart (rate limited)
- GET /orders/mine/ - Current user's orders
- GET /orders/{id}/ - Order detail
- GET /orders/number/{order_number}/ - Order detail by order number
- PUT /orders/{id}/status/ - Change order status (staff)
- POST /orders/{id}/cancel/ - Cancel own order
"""
from decimal import Decimal, InvalidOperation

from django.db.models import Q
from django.utils.dateparse import parse_date
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.rate_limiting import RateLimitMixin
from core.results import failure_payload
from .models import OrderStatus
from .serializers import (
    OrderCreateSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from . import services

SORT_FIELDS = {
    'ordernumber': 'order_number',
    'amount': 'total_amount',
    'status': 'status',
    'date': 'created_at',
}


def _failure_response(result):
    code = status.HTTP_404_NOT_FOUND if result.not_found else status.HTTP_400_BAD_REQUEST
    return Response(failure_payload(result), status=code)


def _order_response(order, code=status.HTTP_200_OK):
    # Re-read with items and history prefetched
    order = services.order_queryset().get(id=order.id)
    return Response(OrderSerializer(order).data, status=code)


def _date_param(value):
    try:
        return parse_date(value or '')
    except ValueError:
        return None


def _decimal_param(value):
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


# =============================================================================
# Checkout and listing
# =============================================================================

class OrderListCreateView(RateLimitMixin, generics.ListCreateAPIView):
    """
    GET: Staff only. List orders, newest first by default.
    POST: Place an order from the current user's cart.

    Query Parameters (GET):
        - status: Filter by status (PENDING, PROCESSING, ...)
        - from_date / to_date: Creation date range (YYYY-MM-DD, inclusive)
        - min_amount / max_amount: Total amount range
        - search: Order number, customer name or email
        - sort_by: ordernumber | amount | status | date
        - sort_desc: true/false (default true)

    Request Body (POST):
    {
        "shipping_address": {...},
        "billing_address": {...},
        "coupon_code": "WELCOME10",
        "payment_method": "CASH_ON_DELIVERY"
    }
    """
    rate_limit_setting = 'CHECKOUT_RATE_LIMIT'

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return OrderCreateSerializer
        return OrderListSerializer

    def list(self, request, *args, **kwargs):
        if not request.user.is_staff:
            raise PermissionDenied("Only staff can list all orders")
        return super().list(request, *args, **kwargs)

    def get_queryset(self):
        params = self.request.query_params
        queryset = services.order_queryset()

        status_filter = params.get('status', '').upper()
        if status_filter in OrderStatus.values:
            queryset = queryset.filter(status=status_filter)

        from_date = _date_param(params.get('from_date'))
        if from_date:
            queryset = queryset.filter(created_at__date__gte=from_date)

        to_date = _date_param(params.get('to_date'))
        if to_date:
            queryset = queryset.filter(created_at__date__lte=to_date)

        min_amount = _decimal_param(params.get('min_amount'))
        if min_amount is not None:
            queryset = queryset.filter(total_amount__gte=min_amount)

        max_amount = _decimal_param(params.get('max_amount'))
        if max_amount is not None:
            queryset = queryset.filter(total_amount__lte=max_amount)

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(order_number__icontains=search)
                | Q(user__first_name__icontains=search)
                | Q(user__last_name__icontains=search)
                | Q(user__email__icontains=search)
            )

        field = SORT_FIELDS.get(params.get('sort_by', '').lower(), 'created_at')
        descending = params.get('sort_desc', 'true').lower() != 'false'
        return queryset.order_by(f"-{field}" if descending else field, '-id')

    def create(self, request, *args, **kwargs):
        """
        Returns:
            - 201: Order placed
            - 400: Validation error, empty cart, stock or coupon failure
        """
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = services.create_order(
            request.user,
            shipping_address=dict(data['shipping_address']),
            billing_address=dict(data['billing_address']) if data.get('billing_address') else None,
            coupon_code=data.get('coupon_code'),
            payment_method=data['payment_method'],
        )
        if not result:
            return _failure_response(result)

        return _order_response(result.data, status.HTTP_201_CREATED)


class UserOrdersView(generics.ListAPIView):
    """GET: The current user's orders, newest first."""
    serializer_class = OrderListSerializer

    def get_queryset(self):
        return services.get_user_orders(self.request.user)


# =============================================================================
# Single order
# =============================================================================

class OrderDetailView(APIView):
    """GET: Order detail; customers only see their own orders."""

    def get(self, request, pk):
        result = services.get_order(pk, user=request.user)
        if not result:
            return _failure_response(result)
        return Response(OrderSerializer(result.data).data)


class OrderByNumberView(APIView):

    def get(self, request, order_number):
        result = services.get_order_by_number(order_number, user=request.user)
        if not result:
            return _failure_response(result)
        return Response(OrderSerializer(result.data).data)


class OrderStatusUpdateView(APIView):
    """
    PUT: Move an order to a new status (staff only).

    Request Body:
    {
        "status": "SHIPPED",
        "tracking_number": "TRK123",   (optional)
        "comment": "Left warehouse"    (optional)
    }
    """
    permission_classes = [IsAdminUser]

    def put(self, request, pk):
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = services.update_order_status(
            pk,
            data['status'],
            tracking_number=data.get('tracking_number') or None,
            comment=data.get('comment') or None,
            actor=request.user,
        )
        if not result:
            return _failure_response(result)
        return _order_response(result.data)


class OrderCancelView(APIView):
    """POST: Cancel one of the current user's orders."""

    def post(self, request, pk):
        result = services.cancel_order(pk, request.user)
        if not result:
            return _failure_response(result)
        return _order_response(result.data)
