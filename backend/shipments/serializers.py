from decimal import Decimal

from rest_framework import serializers

from core.choices import TransportMode

from .models import Shipment, ShipmentLog


class ShipmentLogSerializer(serializers.ModelSerializer):
    changed_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = ShipmentLog
        fields = ["id", "old_status", "new_status", "location", "notes", "changed_by", "created_at"]
        read_only_fields = fields


class ShipmentSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.name", read_only=True)
    origin_country = serializers.CharField(max_length=2)
    destination_country = serializers.CharField(max_length=2)
    transport_mode = serializers.ListField(
        child=serializers.ChoiceField(choices=TransportMode.values), min_length=1, max_length=4
    )
    weight = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal("0.001"), max_value=Decimal("100000")
    )
    currency = serializers.RegexField(r"^[A-Z]{3}$", required=False, default="EUR")

    class Meta:
        model = Shipment
        fields = [
            "id", "tracking_number", "client", "client_name", "quote",
            "origin_address", "origin_city", "origin_postal_code", "origin_country",
            "origin_contact", "origin_phone",
            "destination_address", "destination_city", "destination_postal_code", "destination_country",
            "destination_contact", "destination_phone",
            "cargo_type", "weight", "volume", "package_count", "value", "currency",
            "description", "special_instructions", "transport_mode", "priority", "status",
            "estimated_cost", "actual_cost", "requested_pickup_date", "estimated_delivery_date",
            "actual_pickup_date", "actual_delivery_date", "created_at", "updated_at",
        ]
        read_only_fields = (
            "tracking_number", "status", "actual_pickup_date", "actual_delivery_date",
            "created_at", "updated_at",
        )

    @staticmethod
    def _country(value):
        code = (value or "").strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise serializers.ValidationError("Country code must be two letters (ISO 3166-1 alpha-2).")
        return code

    def validate_origin_country(self, value):
        return self._country(value)

    def validate_destination_country(self, value):
        return self._country(value)

    def validate_quote(self, quote):
        if quote is not None and quote.status not in ("ACCEPTED", "IN_TREATMENT", "VALIDATED"):
            raise serializers.ValidationError("Only an accepted quote can be linked to a shipment.")
        return quote


class ShipmentDetailSerializer(ShipmentSerializer):
    logs = ShipmentLogSerializer(many=True, read_only=True)

    class Meta(ShipmentSerializer.Meta):
        fields = ShipmentSerializer.Meta.fields + ["logs"]


class ShipmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[value for value, _ in Shipment.STATUS_CHOICES])
    location = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)
