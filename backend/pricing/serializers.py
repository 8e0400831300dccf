from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from core.choices import Priority, TransportMode

from .dataclasses import Package
from .models import DisplayRate, PricingConfig, TransportRate
from .services.estimator import MAX_PACKAGES
from .services.pricing_config import CONFIG_FIELDS


class PackageSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    quantity = serializers.IntegerField(min_value=1, max_value=10000, default=1)
    cargo_type = serializers.CharField(required=False, default="GENERAL")
    weight = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal("0.001"))
    length = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    width = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    height = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def to_package(self, data=None) -> Package:
        data = data if data is not None else self.validated_data
        return Package(
            weight_kg=data["weight"],
            cargo_type=data.get("cargo_type") or "GENERAL",
            quantity=data.get("quantity", 1),
            length_cm=data.get("length"),
            width_cm=data.get("width"),
            height_cm=data.get("height"),
            description=data.get("description"),
        )


def packages_from_validated(rows) -> list:
    return [PackageSerializer().to_package(row) for row in rows or []]


class EstimateRequestSerializer(serializers.Serializer):
    """
    Input of the estimate endpoint.

    Countries may be ISO codes or (French) country names. Either a single
    ``weight`` (+ optional dimensions) or a ``packages`` list is required.
    """
    origin_country = serializers.CharField(max_length=100)
    destination_country = serializers.CharField(max_length=100)
    cargo_type = serializers.CharField(required=False, default="GENERAL")
    weight = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, allow_null=True)
    length = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    width = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    height = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    transport_mode = serializers.ListField(
        child=serializers.ChoiceField(choices=TransportMode.values), min_length=1, max_length=4
    )
    priority = serializers.ChoiceField(choices=Priority.values, default=Priority.STANDARD)
    packages = PackageSerializer(many=True, required=False)
    display_currency = serializers.CharField(required=False, allow_blank=True, max_length=3)

    def validate_packages(self, value):
        if len(value) > MAX_PACKAGES:
            raise serializers.ValidationError(f"At most {MAX_PACKAGES} package lines are allowed.")
        return value

    def validate(self, attrs):
        if not attrs.get("packages"):
            weight = attrs.get("weight")
            if weight is None or weight <= 0:
                raise serializers.ValidationError({"weight": "Weight must be strictly positive."})
        return attrs


class TransportRateSerializer(serializers.ModelSerializer):
    rate_per_kg = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01"), max_value=Decimal("1000")
    )
    rate_per_m3 = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01"), max_value=Decimal("100000")
    )
    origin_country_code = serializers.CharField(max_length=2, min_length=2)
    destination_country_code = serializers.CharField(max_length=2, min_length=2)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)
    route = serializers.CharField(read_only=True)

    class Meta:
        model = TransportRate
        fields = [
            "id", "origin_country_code", "destination_country_code", "transport_mode",
            "rate_per_kg", "rate_per_m3", "is_active", "notes", "route",
            "created_at", "updated_at",
        ]
        read_only_fields = ("created_at", "updated_at")
        # uniqueness is checked in validate() after code normalisation
        validators = []

    @staticmethod
    def _normalize_code(value: str) -> str:
        normalized = (value or "").strip().upper()
        if len(normalized) != 2 or not normalized.isalpha():
            raise serializers.ValidationError("Country code must be two letters (ISO 3166-1 alpha-2).")
        return normalized

    def validate_origin_country_code(self, value: str) -> str:
        return self._normalize_code(value)

    def validate_destination_country_code(self, value: str) -> str:
        return self._normalize_code(value)

    def validate(self, attrs):
        origin = attrs.get("origin_country_code", getattr(self.instance, "origin_country_code", None))
        dest = attrs.get("destination_country_code", getattr(self.instance, "destination_country_code", None))
        mode = attrs.get("transport_mode", getattr(self.instance, "transport_mode", None))
        if origin and dest and origin == dest:
            raise serializers.ValidationError(
                {"destination_country_code": "Origin and destination must be different."}
            )
        qs = TransportRate.objects.filter(
            origin_country_code=origin, destination_country_code=dest, transport_mode=mode
        )
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError(f"A rate already exists for {origin} → {dest} ({mode}).")
        return attrs


class PricingConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingConfig
        fields = ["id", *CONFIG_FIELDS, "is_active", "updated_by", "updated_at"]
        read_only_fields = fields


class DisplayRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = DisplayRate
        fields = ["currency", "rate", "as_of", "source"]
