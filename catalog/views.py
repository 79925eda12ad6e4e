"""
Catalog API Views.

Implements:
- GET /products/ - List active products
- GET /products/{id}/ - Product detail
- GET/POST/DELETE /cart/ - Current user's cart
- PATCH/DELETE /cart/{id}/ - Single cart line
"""
from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.results import failure_payload
from .models import Product
from .serializers import (
    CartItemCreateSerializer,
    CartItemSerializer,
    CartItemUpdateSerializer,
    CartSerializer,
    ProductSerializer,
)
from . import services


def _failure_response(result):
    code = status.HTTP_404_NOT_FOUND if result.not_found else status.HTTP_400_BAD_REQUEST
    return Response(failure_payload(result), status=code)


class ProductListView(generics.ListAPIView):
    """
    GET: List active products with category info.

    Query Parameters:
        - category_id: Filter by category
        - in_stock: Only products with stock (true/false)
    """
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        queryset = Product.objects.select_related('category').filter(is_active=True)

        category_id = self.request.query_params.get('category_id')
        if category_id:
            queryset = queryset.filter(category_id=category_id)

        if self.request.query_params.get('in_stock', '').lower() == 'true':
            queryset = queryset.filter(stock_quantity__gt=0)

        return queryset.order_by('name')


class ProductDetailView(generics.RetrieveAPIView):
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return Product.objects.select_related('category').filter(is_active=True)


class CartView(APIView):
    """
    GET: Current cart with line totals
    POST: Add a product {"product_id": 1, "quantity": 2}
    DELETE: Empty the cart
    """

    def get(self, request):
        summary = services.get_cart_summary(request.user)
        return Response(CartSerializer(summary).data)

    def post(self, request):
        serializer = CartItemCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.add_to_cart(
            request.user,
            serializer.validated_data['product_id'],
            serializer.validated_data['quantity'],
        )
        if not result:
            return _failure_response(result)

        return Response(
            CartItemSerializer(result.data).data,
            status=status.HTTP_201_CREATED
        )

    def delete(self, request):
        result = services.clear_cart(request.user)
        if not result:
            return _failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartItemView(APIView):
    """
    PATCH: Change quantity of a cart line
    DELETE: Remove a cart line
    """

    def patch(self, request, pk):
        serializer = CartItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.update_cart_item(
            request.user, pk, serializer.validated_data['quantity']
        )
        if not result:
            return _failure_response(result)
        return Response(CartItemSerializer(result.data).data)

    def delete(self, request, pk):
        result = services.remove_cart_item(request.user, pk)
        if not result:
            return _failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)
