from django.db.models import Q

from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsOperationsOrAdmin, RolePermission, can_read_all
from core.exceptions import WorkflowError

from . import services
from .models import Shipment
from .serializers import (
    ShipmentDetailSerializer,
    ShipmentLogSerializer,
    ShipmentSerializer,
    ShipmentStatusSerializer,
)


class ShipmentViewSet(viewsets.ModelViewSet):
    """
    Shipments. Filters: ``status``, ``client``, ``origin``, ``destination``,
    ``mode``, ``cargo_type``, ``search`` (tracking number, client, cities).
    """
    permission_classes = [RolePermission]
    permission_map = {
        'list': 'shipments:read:own',
        'retrieve': 'shipments:read:own',
        'create': 'shipments:create',
        'update': 'shipments:update',
        'partial_update': 'shipments:update',
        'destroy': 'shipments:delete',
        'update_status': 'shipments:update',
        'logs': 'shipments:read:own',
    }

    def get_queryset(self):
        user = self.request.user
        qs = Shipment.objects.select_related('client')
        if not can_read_all(user, "shipments"):
            qs = qs.filter(client_id=user.client_id) if user.client_id else qs.none()

        params = self.request.query_params
        if params.get('status'):
            qs = qs.filter(status=params['status'].upper())
        if params.get('client'):
            qs = qs.filter(client_id=params['client'])
        if params.get('origin'):
            qs = qs.filter(origin_country=params['origin'].upper())
        if params.get('destination'):
            qs = qs.filter(destination_country=params['destination'].upper())
        if params.get('cargo_type'):
            qs = qs.filter(cargo_type=params['cargo_type'].upper())
        if params.get('mode'):
            mode = params['mode'].upper()
            # JSON list lookups differ between backends; filter in Python
            rows = Shipment.objects.filter(pk__in=qs.values('pk')).values_list('id', 'transport_mode')
            ids = [pk for pk, modes in rows if mode in (modes or [])]
            qs = qs.filter(pk__in=ids)
        search = params.get('search')
        if search:
            qs = qs.filter(
                Q(tracking_number__icontains=search)
                | Q(client__name__icontains=search)
                | Q(origin_city__icontains=search)
                | Q(destination_city__icontains=search)
            )
        return qs

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ShipmentDetailSerializer
        return ShipmentSerializer

    def perform_create(self, serializer):
        serializer.instance = services.create_shipment(serializer.validated_data, user=self.request.user)

    def destroy(self, request, *args, **kwargs):
        try:
            services.delete_shipment(self.get_object())
        except WorkflowError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='status',
            permission_classes=[RolePermission, IsOperationsOrAdmin])
    def update_status(self, request, pk=None):
        shipment = self.get_object()
        ser = ShipmentStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            shipment = services.update_shipment_status(shipment, user=request.user, **ser.validated_data)
        except WorkflowError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ShipmentDetailSerializer(shipment).data)

    @action(detail=True, methods=['get'])
    def logs(self, request, pk=None):
        shipment = self.get_object()
        return Response(ShipmentLogSerializer(shipment.logs.select_related('changed_by'), many=True).data)


class PublicTrackingView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, tracking_number):
        data = services.public_tracking(tracking_number)
        if data is None:
            return Response({"detail": "Shipment not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(data)
