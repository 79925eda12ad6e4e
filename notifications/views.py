"""
Notification API Views.

Implements:
- GET /notifications/ - Current user's inbox, newest first
- GET /notifications/unread-count/ - Number of unread notifications
- POST /notifications/{id}/read/ - Mark one as read
- POST /notifications/read-all/ - Mark all as read
"""
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .serializers import NotificationSerializer
from . import services


class NotificationListView(generics.ListAPIView):
    """
    GET: Inbox for the current user.

    Query Parameters:
        - unread: Only unread notifications (true/false)
    """
    serializer_class = NotificationSerializer

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user).select_related('order')
        if self.request.query_params.get('unread', '').lower() == 'true':
            queryset = queryset.filter(is_read=False)
        return queryset


class UnreadCountView(APIView):

    def get(self, request):
        return Response({'unread_count': services.unread_count(request.user)})


class MarkAsReadView(APIView):

    def post(self, request, pk):
        if not services.mark_as_read(request.user, pk):
            return Response(
                {'success': False, 'message': 'Notification not found'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response({'success': True, 'message': 'Notification marked as read'})


class MarkAllAsReadView(APIView):

    def post(self, request):
        updated = services.mark_all_as_read(request.user)
        return Response({
            'success': True,
            'message': f'{updated} notifications marked as read',
            'updated': updated,
        })
