import logging

from django.db.models import Q

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import FINANCE_MANAGER, IsOperationsOrAdmin, RolePermission, can_read_all, has_permission
from core.exceptions import WorkflowError

from . import services
from .models import PickupRequest
from .serializers import (
    AssignDriverSerializer,
    GuestPickupSerializer,
    PickupCancelSerializer,
    PickupLogSerializer,
    PickupRequestSerializer,
    PickupStatusSerializer,
    PublicPickupSerializer,
    SchedulePickupSerializer,
)

logger = logging.getLogger(__name__)


def _bad_request(e):
    return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)


class PickupRequestViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           mixins.CreateModelMixin,
                           viewsets.GenericViewSet):
    """
    Pickup requests. CLIENT users see the pickups of their company and the
    ones they created themselves.

    Filters: ``status``, ``search`` (tracking number, contact, city).
    """
    permission_classes = [RolePermission]
    serializer_class = PickupRequestSerializer
    permission_map = {
        'list': 'pickups:read:own',
        'retrieve': 'pickups:read:own',
        'create': 'pickups:create:own',
        'update_status': 'pickups:update',
        'cancel': 'pickups:read:own',
        'assign_driver': 'pickups:update',
        'schedule': 'pickups:update',
        'history': 'pickups:read:own',
        'attach': 'pickups:read:own',
    }

    def get_queryset(self):
        user = self.request.user
        qs = PickupRequest.objects.select_related('client')
        if not can_read_all(user, "pickups"):
            own = Q(user=user)
            if user.client_id:
                own |= Q(client_id=user.client_id)
            qs = qs.filter(own)

        params = self.request.query_params
        if params.get('status'):
            qs = qs.filter(status=params['status'].upper())
        search = params.get('search')
        if search:
            qs = qs.filter(
                Q(tracking_number__icontains=search)
                | Q(contact_name__icontains=search)
                | Q(contact_email__icontains=search)
                | Q(pickup_city__icontains=search)
            )
        return qs

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        user = self.request.user
        if not has_permission(user.role, 'pickups:create'):
            # scoped creators always book for their own company
            data['client'] = user.client
        serializer.instance = services.create_pickup(data, user=user)

    @action(detail=True, methods=['post'], url_path='status',
            permission_classes=[RolePermission, IsOperationsOrAdmin])
    def update_status(self, request, pk=None):
        pickup = self.get_object()
        ser = PickupStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            pickup = services.update_pickup_status(pickup, user=request.user, **ser.validated_data)
        except WorkflowError as e:
            return _bad_request(e)
        return Response(PickupRequestSerializer(pickup).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        pickup = self.get_object()
        user = request.user
        if user.role == FINANCE_MANAGER or not (
            has_permission(user.role, 'pickups:update') or pickup.user_id == user.pk
            or (user.client_id and pickup.client_id == user.client_id)
        ):
            raise PermissionDenied("You do not have permission to cancel this pickup.")
        ser = PickupCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            pickup = services.cancel_pickup(pickup, user=user, reason=ser.validated_data['reason'])
        except WorkflowError as e:
            return _bad_request(e)
        return Response(PickupRequestSerializer(pickup).data)

    @action(detail=True, methods=['post'], url_path='assign-driver',
            permission_classes=[RolePermission, IsOperationsOrAdmin])
    def assign_driver(self, request, pk=None):
        pickup = self.get_object()
        ser = AssignDriverSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            pickup = services.assign_driver(
                pickup, ser.validated_data['driver_name'], ser.validated_data.get('driver_phone'), user=request.user
            )
        except WorkflowError as e:
            return _bad_request(e)
        return Response(PickupRequestSerializer(pickup).data)

    @action(detail=True, methods=['post'], permission_classes=[RolePermission, IsOperationsOrAdmin])
    def schedule(self, request, pk=None):
        pickup = self.get_object()
        ser = SchedulePickupSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            pickup = services.schedule_pickup(pickup, user=request.user, **ser.validated_data)
        except WorkflowError as e:
            return _bad_request(e)
        return Response(PickupRequestSerializer(pickup).data)

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        pickup = self.get_object()
        return Response(PickupLogSerializer(services.get_pickup_history(pickup), many=True).data)

    @action(detail=False, methods=['post'])
    def attach(self, request):
        count = services.attach_pickups_to_account(request.user)
        return Response({"attached": count})


class GuestPickupView(APIView):
    """Anonymous pickup request. The response carries the tracking token."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = GuestPickupSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pickup = services.create_guest_pickup(ser.validated_data)
        return Response({
            "tracking_number": pickup.tracking_number,
            "tracking_token": pickup.tracking_token,
            "token_expires_at": pickup.token_expires_at,
        }, status=status.HTTP_201_CREATED)


class PickupTrackingView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, token):
        try:
            pickup = services.track_pickup_by_token(token)
        except services.TrackingTokenExpired as e:
            return Response({"detail": str(e)}, status=status.HTTP_410_GONE)
        if pickup is None:
            return Response({"detail": "Pickup not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PublicPickupSerializer(pickup).data)
