"""
Coupon API Views.

Implements:
- GET/POST /coupons/ - Staff list and create
- GET /coupons/active/ - Coupons currently usable (public)
- GET /coupons/code/{code}/ - Look up a coupon by code
- POST /coupons/validate/ - Check a code against an order amount (rate limited)
- GET/PATCH/DELETE /coupons/{id}/ - Staff detail, update, delete
- POST /coupons/{id}/activate/ and /deactivate/ - Staff
"""
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.rate_limiting import rate_limit
from core.results import failure_payload
from .models import Coupon
from .serializers import (
    CouponSerializer,
    CouponValidationResultSerializer,
    CouponWriteSerializer,
    ValidateCouponSerializer,
)
from . import services


def _failure_response(result):
    code = status.HTTP_404_NOT_FOUND if result.not_found else status.HTTP_400_BAD_REQUEST
    return Response(failure_payload(result), status=code)


# =============================================================================
# Staff administration
# =============================================================================

class CouponListCreateView(generics.ListCreateAPIView):
    """
    GET: All coupons, newest first
    POST: Create a coupon
    """
    permission_classes = [IsAdminUser]
    queryset = Coupon.objects.all()

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return CouponWriteSerializer
        return CouponSerializer

    def create(self, request, *args, **kwargs):
        serializer = CouponWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.create_coupon(serializer.validated_data)
        if not result:
            return _failure_response(result)
        return Response(CouponSerializer(result.data).data, status=status.HTTP_201_CREATED)


class CouponDetailView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request, pk):
        coupon = Coupon.objects.filter(id=pk).first()
        if coupon is None:
            return Response(
                {'success': False, 'message': 'Coupon not found'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response(CouponSerializer(coupon).data)

    def patch(self, request, pk):
        serializer = CouponWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = services.update_coupon(pk, serializer.validated_data)
        if not result:
            return _failure_response(result)
        return Response(CouponSerializer(result.data).data)

    def delete(self, request, pk):
        result = services.delete_coupon(pk)
        if not result:
            return _failure_response(result)
        return Response({'success': True, 'message': result.message})


class CouponActivateView(APIView):
    permission_classes = [IsAdminUser]
    is_active = True

    def post(self, request, pk):
        result = services.set_coupon_active(pk, self.is_active)
        if not result:
            return _failure_response(result)
        return Response(CouponSerializer(result.data).data)


class CouponDeactivateView(CouponActivateView):
    is_active = False


# =============================================================================
# Customer facing
# =============================================================================

class ActiveCouponListView(generics.ListAPIView):
    """GET: Active coupons inside their validity window with uses left."""
    serializer_class = CouponSerializer
    permission_classes = [AllowAny]
    pagination_class = None

    def get_queryset(self):
        return services.get_active_coupons()


class CouponByCodeView(APIView):

    def get(self, request, code):
        coupon = services.find_coupon(code)
        if coupon is None:
            return Response(
                {'success': False, 'message': 'Coupon not found'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response(CouponSerializer(coupon).data)


class ValidateCouponView(APIView):
    """
    POST: Check a coupon for the current user.

    Request Body:
    {
        "code": "WELCOME10",
        "order_amount": "1499.00"
    }

    Always 200 for a well-formed request; is_valid and error_message
    carry the outcome.
    """

    @rate_limit(setting_name='COUPON_VALIDATE_RATE_LIMIT')
    def post(self, request):
        serializer = ValidateCouponSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.validate_coupon(
            serializer.validated_data['code'],
            serializer.validated_data['order_amount'],
            user_id=request.user.pk
        )
        return Response(CouponValidationResultSerializer(result).data)
