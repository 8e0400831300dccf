from django.db.models import Q

from rest_framework import status, viewsets
from rest_framework.response import Response

from accounts.permissions import RolePermission, can_read_all

from .models import Client
from .serializers import ClientSerializer


class ClientViewSet(viewsets.ModelViewSet):
    serializer_class = ClientSerializer
    permission_classes = [RolePermission]
    permission_map = {
        'list': 'clients:read:own',
        'retrieve': 'clients:read:own',
        'create': 'clients:create',
        'update': 'clients:update',
        'partial_update': 'clients:update',
        'destroy': 'clients:delete',
    }

    def get_queryset(self):
        user = self.request.user
        qs = Client.objects.all().order_by('name')
        if not can_read_all(user, "clients"):
            qs = qs.filter(pk=user.client_id) if user.client_id else qs.none()

        params = self.request.query_params
        search = params.get('search')
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(tax_id__icontains=search)
            )
        client_type = params.get('client_type')
        if client_type:
            qs = qs.filter(client_type=client_type.upper())
        return qs

    def destroy(self, request, *args, **kwargs):
        client = self.get_object()
        if client.quotes.exists() or client.shipments.exists():
            return Response(
                {"detail": "Client has quotes or shipments and cannot be deleted."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        client.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
