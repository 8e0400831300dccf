import logging

from django.db.models import Q

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import RolePermission, can_read_all, has_permission
from core.exceptions import WorkflowError
from pricing.exceptions import PricingError

from . import services
from .models import GuestQuote, Quote
from .serializers import (
    GuestQuoteConvertSerializer,
    GuestQuoteCreateSerializer,
    GuestQuoteSerializer,
    PublicGuestQuoteSerializer,
    QuoteLogSerializer,
    QuoteNotesSerializer,
    QuoteRejectSerializer,
    QuoteSerializer,
    QuoteWriteSerializer,
    ShipmentFromQuoteSerializer,
)

logger = logging.getLogger(__name__)


def _bad_request(e):
    return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)


class QuoteViewSet(viewsets.ModelViewSet):
    """
    Quotes. CLIENT users only see and create quotes for their own company.

    Filters: ``status``, ``client``, ``search`` (quote number or client name).
    """
    permission_classes = [RolePermission]
    permission_map = {
        'list': 'quotes:read:own',
        'retrieve': 'quotes:read:own',
        'create': 'quotes:create:own',
        'update': 'quotes:update',
        'partial_update': 'quotes:update',
        'destroy': 'quotes:delete',
        'send': 'quotes:update',
        'accept': 'quotes:read:own',
        'reject': 'quotes:read:own',
        'cancel': 'quotes:update',
        'start_treatment': 'quotes:update',
        'convert_to_shipment': 'shipments:create',
        'logs': 'quotes:read:own',
    }

    def get_queryset(self):
        user = self.request.user
        qs = Quote.objects.select_related('client').prefetch_related('packages')
        if not can_read_all(user, "quotes"):
            qs = qs.filter(client_id=user.client_id) if user.client_id else qs.none()

        params = self.request.query_params
        if params.get('status'):
            qs = qs.filter(status=params['status'].upper())
        if params.get('client'):
            qs = qs.filter(client_id=params['client'])
        search = params.get('search')
        if search:
            qs = qs.filter(Q(quote_number__icontains=search) | Q(client__name__icontains=search))
        return qs

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return QuoteWriteSerializer
        return QuoteSerializer

    def _check_client_scope(self, client):
        user = self.request.user
        if has_permission(user.role, 'quotes:create'):
            return
        if not user.client_id:
            raise PermissionDenied("Your account is not linked to a client.")
        if client.pk != user.client_id:
            raise PermissionDenied("You can only create quotes for your own company.")

    def _check_owner_or_update(self, quote):
        user = self.request.user
        if has_permission(user.role, 'quotes:update'):
            return
        if user.client_id is None or user.client_id != quote.client_id:
            raise PermissionDenied("You do not have permission to act on this quote.")

    def create(self, request, *args, **kwargs):
        ser = QuoteWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        self._check_client_scope(ser.validated_data['client'])
        fields, packages = ser.split()
        try:
            quote = services.create_quote(fields, packages, user=request.user)
        except PricingError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        quote = self.get_object()
        ser = QuoteWriteSerializer(data=request.data, partial=kwargs.pop('partial', False))
        ser.is_valid(raise_exception=True)
        fields, packages = ser.split()
        try:
            quote = services.update_quote(quote, fields, packages, user=request.user)
        except (WorkflowError, PricingError) as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    def destroy(self, request, *args, **kwargs):
        try:
            services.delete_quote(self.get_object())
        except WorkflowError as e:
            return _bad_request(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def send(self, request, pk=None):
        try:
            quote = services.send_quote(self.get_object(), user=request.user)
        except WorkflowError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        quote = self.get_object()
        self._check_owner_or_update(quote)
        ser = QuoteNotesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = services.accept_quote(quote, user=request.user, notes=ser.validated_data.get('notes'))
        except WorkflowError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        quote = self.get_object()
        self._check_owner_or_update(quote)
        ser = QuoteRejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = services.reject_quote(quote, user=request.user, reason=ser.validated_data.get('reason'))
        except WorkflowError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        ser = QuoteRejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = services.cancel_quote(self.get_object(), user=request.user, reason=ser.validated_data.get('reason'))
        except WorkflowError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    @action(detail=True, methods=['post'], url_path='start-treatment')
    def start_treatment(self, request, pk=None):
        ser = QuoteNotesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = services.start_treatment(self.get_object(), user=request.user, notes=ser.validated_data.get('notes'))
        except WorkflowError as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data)

    @action(detail=True, methods=['post'], url_path='convert-to-shipment')
    def convert_to_shipment(self, request, pk=None):
        from shipments.serializers import ShipmentSerializer

        ser = ShipmentFromQuoteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            shipment = services.convert_to_shipment(self.get_object(), ser.validated_data, user=request.user)
        except WorkflowError as e:
            return _bad_request(e)
        return Response(ShipmentSerializer(shipment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def logs(self, request, pk=None):
        quote = self.get_object()
        return Response(QuoteLogSerializer(quote.logs.select_related('changed_by'), many=True).data)


class GuestQuoteViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Staff inbox of public calculator requests.

    Filters: ``converted`` (true/false), ``search`` (contact name, email or company).
    """
    permission_classes = [RolePermission]
    serializer_class = GuestQuoteSerializer
    permission_map = {
        'list': 'quotes:read',
        'retrieve': 'quotes:read',
        'convert': ['quotes:create', 'clients:read'],
    }

    def get_queryset(self):
        qs = GuestQuote.objects.select_related('converted_quote', 'converted_by')
        params = self.request.query_params
        if params.get('converted') is not None:
            qs = qs.filter(converted_quote__isnull=params['converted'].lower() not in ('1', 'true', 'yes'))
        search = params.get('search')
        if search:
            qs = qs.filter(
                Q(contact_name__icontains=search)
                | Q(contact_email__icontains=search)
                | Q(company_name__icontains=search)
            )
        return qs

    @action(detail=True, methods=['post'])
    def convert(self, request, pk=None):
        guest = self.get_object()
        ser = GuestQuoteConvertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            quote = services.convert_guest_quote(guest, ser.validated_data['client'], user=request.user)
        except (WorkflowError, PricingError) as e:
            return _bad_request(e)
        return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)


class GuestQuoteCreateView(APIView):
    """Anonymous quote request from the public calculator. Priced server side."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = GuestQuoteCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            guest = services.create_guest_quote(ser.validated_data)
        except PricingError as e:
            return _bad_request(e)
        return Response(PublicGuestQuoteSerializer(guest).data, status=status.HTTP_201_CREATED)


class GuestQuoteDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, token):
        guest = services.get_guest_quote_by_token(token)
        if guest is None:
            return Response({"detail": "Guest quote not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PublicGuestQuoteSerializer(guest).data)
