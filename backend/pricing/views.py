import logging

from django.db import transaction
from django.db.models import Q

from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import ADMIN, IsStaffRole
from core.choices import CargoType, Priority, TransportMode

from .models import DisplayRate, PricingConfig, TransportRate
from .serializers import (
    DisplayRateSerializer,
    EstimateRequestSerializer,
    PricingConfigSerializer,
    TransportRateSerializer,
    packages_from_validated,
)
from .services.currency import DisplayConverter, convert_for_display
from .services.estimator import PricingError, estimate_delivery_days, estimate_quote
from .services.pricing_config import (
    DEFAULT_PRICING_CONFIG,
    PricingConfigError,
    get_pricing_config,
    update_pricing_config,
)

logger = logging.getLogger(__name__)


class IsStaffReadAdminWrite(permissions.BasePermission):
    """Staff roles read; only ADMIN writes."""

    def has_permission(self, request, view):
        if not IsStaffRole().has_permission(request, view):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.role == ADMIN


class EstimateView(APIView):
    """
    POST a route + cargo description, get a price estimate in EUR.

    Open to anonymous visitors (public quote calculator). ``display_currency``
    adds a converted amount for display only.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = EstimateRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            result = estimate_quote(
                origin=data["origin_country"],
                destination=data["destination_country"],
                transport_modes=data["transport_mode"],
                cargo_type=data.get("cargo_type"),
                priority=data.get("priority"),
                weight_kg=data.get("weight"),
                length_cm=data.get("length"),
                width_cm=data.get("width"),
                height_cm=data.get("height"),
                packages=packages_from_validated(data.get("packages")),
            )
        except PricingError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        display_currency = (data.get("display_currency") or "").strip()
        if display_currency:
            result["display"] = convert_for_display(result["estimated_cost"], display_currency)
        return Response(result, status=status.HTTP_200_OK)


class PricingConfigView(APIView):
    permission_classes = [IsStaffReadAdminWrite]

    def get(self, request):
        row = PricingConfig.objects.filter(is_active=True).order_by('-updated_at', '-id').first()
        if row is None:
            return Response({**DEFAULT_PRICING_CONFIG, "id": None, "is_default": True})
        return Response({**PricingConfigSerializer(row).data, "is_default": False})

    def put(self, request):
        try:
            row = update_pricing_config(dict(request.data), user=request.user)
        except PricingConfigError as e:
            return Response({"detail": "Invalid pricing configuration", "errors": e.errors},
                            status=status.HTTP_400_BAD_REQUEST)
        return Response({**PricingConfigSerializer(row).data, "is_default": False})

    patch = put


class PricingOptionsView(APIView):
    """Transport modes (with typical delivery days), priorities and cargo types for forms."""

    def get(self, request):
        config = get_pricing_config()
        modes = []
        for value, label in TransportMode.choices:
            speed = config.delivery_speeds_per_mode.get(value, {})
            modes.append({
                "value": value,
                "label": label,
                "min_days": speed.get("min"),
                "max_days": speed.get("max"),
                "multiplier": config.transport_multipliers.get(value),
            })
        priorities = [
            {
                "value": value,
                "label": label,
                "surcharge": config.priority_surcharges.get(value),
                "coefficient": config.priority_coefficient(value),
            }
            for value, label in Priority.choices
        ]
        cargo_types = [
            {"value": value, "label": label, "surcharge": config.cargo_type_surcharges.get(value)}
            for value, label in CargoType.choices
        ]
        return Response({
            "transport_modes": modes,
            "priorities": priorities,
            "cargo_types": cargo_types,
        })


class DeliveryEstimateView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        mode = request.query_params.get("transport_mode")
        priority = request.query_params.get("priority", Priority.STANDARD)
        return Response({
            "transport_mode": mode,
            "priority": priority,
            "estimated_delivery_days": estimate_delivery_days(mode, priority),
        })


class DisplayRatesView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        converter = DisplayConverter()
        return Response({
            "base": "EUR",
            "rates": {code: str(rate) for code, rate in sorted(converter.rates.items())},
            "fetched": DisplayRateSerializer(DisplayRate.objects.all(), many=True).data,
        })


class TransportRateViewSet(viewsets.ModelViewSet):
    """
    Route tariffs. Filters: ``origin``, ``destination``, ``mode``, ``active``,
    ``search`` (matches either country code or the notes).
    """
    serializer_class = TransportRateSerializer
    permission_classes = [IsStaffReadAdminWrite]

    def get_queryset(self):
        qs = TransportRate.objects.all()
        params = self.request.query_params
        if params.get("origin"):
            qs = qs.filter(origin_country_code=params["origin"].upper())
        if params.get("destination"):
            qs = qs.filter(destination_country_code=params["destination"].upper())
        if params.get("mode"):
            qs = qs.filter(transport_mode=params["mode"].upper())
        if params.get("active") is not None:
            qs = qs.filter(is_active=params["active"].lower() in ("1", "true", "yes"))
        search = params.get("search")
        if search:
            qs = qs.filter(
                Q(origin_country_code__iexact=search)
                | Q(destination_country_code__iexact=search)
                | Q(notes__icontains=search)
            )
        return qs

    @action(detail=True, methods=["post"])
    def toggle(self, request, pk=None):
        rate = self.get_object()
        rate.is_active = not rate.is_active
        rate.save(update_fields=["is_active", "updated_at"])
        return Response(self.get_serializer(rate).data)

    @action(detail=False, methods=["post"], url_path="bulk-import")
    def bulk_import(self, request):
        """
        Upsert many rates at once, keyed by route + mode.

        Body: ``{"rates": [{...}, ...]}``. Invalid rows are reported and skipped.
        """
        rows = request.data.get("rates") if isinstance(request.data, dict) else None
        if not isinstance(rows, list) or not rows:
            return Response({"detail": "rates must be a non-empty list"}, status=status.HTTP_400_BAD_REQUEST)

        created, updated, errors = 0, 0, []
        with transaction.atomic():
            for index, row in enumerate(rows):
                if not isinstance(row, dict):
                    errors.append({"index": index, "errors": "expected an object"})
                    continue
                existing = TransportRate.objects.filter(
                    origin_country_code=str(row.get("origin_country_code", "")).upper(),
                    destination_country_code=str(row.get("destination_country_code", "")).upper(),
                    transport_mode=str(row.get("transport_mode", "")).upper(),
                ).first()
                ser = TransportRateSerializer(instance=existing, data=row)
                if not ser.is_valid():
                    errors.append({"index": index, "errors": ser.errors})
                    continue
                ser.save()
                if existing is None:
                    created += 1
                else:
                    updated += 1

        logger.info("Transport rate import: %d created, %d updated, %d errors", created, updated, len(errors))
        return Response({"created": created, "updated": updated, "errors": errors}, status=status.HTTP_200_OK)
