from decimal import Decimal

from rest_framework import serializers

from clients.models import Client
from core.choices import CargoType, Priority, TransportMode
from pricing.serializers import PackageSerializer, packages_from_validated
from pricing.services.estimator import MAX_PACKAGES, resolve_country_code

from .models import GuestQuote, Quote, QuoteLog, QuotePackage


def _country_code(value: str) -> str:
    code = (value or "").strip().upper()
    if len(code) != 2 or not code.isalpha():
        raise serializers.ValidationError("Country code must be two letters (ISO 3166-1 alpha-2).")
    return code


class QuotePackageSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuotePackage
        fields = [
            "id", "description", "quantity", "cargo_type", "weight",
            "length", "width", "height", "unit_price", "total_price",
        ]
        read_only_fields = fields


class QuoteLogSerializer(serializers.ModelSerializer):
    changed_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = QuoteLog
        fields = ["id", "action", "old_status", "new_status", "notes", "metadata", "changed_by", "created_at"]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    """Read representation of a quote, with its package lines."""
    client_name = serializers.CharField(source="client.name", read_only=True)
    packages = QuotePackageSerializer(many=True, read_only=True)

    class Meta:
        model = Quote
        fields = [
            "id", "quote_number", "client", "client_name",
            "origin_country", "destination_country", "cargo_type", "weight",
            "length", "width", "height", "volume", "transport_mode", "priority",
            "estimated_cost", "currency", "estimated_delivery_days", "valid_until",
            "status", "accepted_at", "rejected_at", "rejection_reason", "notes",
            "packages", "created_at", "updated_at",
        ]
        read_only_fields = fields


class QuoteWriteSerializer(serializers.Serializer):
    """
    Quote input. The price is never taken from the client: it is computed
    from these fields by the estimator.
    """
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all())
    origin_country = serializers.CharField(max_length=2)
    destination_country = serializers.CharField(max_length=2)
    cargo_type = serializers.ChoiceField(choices=CargoType.values, default=CargoType.GENERAL)
    weight = serializers.DecimalField(
        max_digits=12, decimal_places=3, required=False, allow_null=True,
        min_value=Decimal("0.001"), max_value=Decimal("100000"),
    )
    length = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    width = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    height = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    transport_mode = serializers.ListField(
        child=serializers.ChoiceField(choices=TransportMode.values), min_length=1, max_length=4
    )
    priority = serializers.ChoiceField(choices=Priority.values, default=Priority.STANDARD)
    valid_until = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    packages = PackageSerializer(many=True, required=False)

    def validate_origin_country(self, value):
        return _country_code(value)

    def validate_destination_country(self, value):
        return _country_code(value)

    def validate_packages(self, value):
        if len(value) > MAX_PACKAGES:
            raise serializers.ValidationError(f"At most {MAX_PACKAGES} package lines are allowed.")
        return value

    def validate(self, attrs):
        if self.partial:
            return attrs
        if not attrs.get("packages") and not attrs.get("weight"):
            raise serializers.ValidationError({"weight": "Weight is required when no packages are given."})
        return attrs

    def split(self):
        """Return (quote fields, packages or None) from validated data."""
        data = dict(self.validated_data)
        rows = data.pop("packages", None)
        packages = packages_from_validated(rows) if rows else None
        return data, packages


class QuoteRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class QuoteNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class ShipmentFromQuoteSerializer(serializers.Serializer):
    origin_address = serializers.CharField(required=False, allow_blank=True, max_length=200)
    origin_city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    origin_postal_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    origin_contact = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    origin_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    destination_address = serializers.CharField(required=False, allow_blank=True, max_length=200)
    destination_city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    destination_postal_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    destination_contact = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    destination_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    description = serializers.CharField(required=False, allow_blank=True)
    special_instructions = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class GuestQuoteCreateSerializer(serializers.Serializer):
    """Public calculator request. Country names accepted by the estimator are resolved to ISO codes."""
    contact_name = serializers.CharField(min_length=2, max_length=100)
    contact_email = serializers.EmailField()
    contact_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    company_name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    origin_country = serializers.CharField(max_length=100)
    destination_country = serializers.CharField(max_length=100)
    cargo_type = serializers.ChoiceField(choices=CargoType.values, default=CargoType.GENERAL)
    weight = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal("0.001"), max_value=Decimal("100000"),
    )
    length = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    width = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    height = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal("0"), max_value=Decimal("10000"),
    )
    transport_mode = serializers.ListField(
        child=serializers.ChoiceField(choices=TransportMode.values), min_length=1, max_length=4
    )
    priority = serializers.ChoiceField(choices=Priority.values, default=Priority.STANDARD)
    message = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def validate_contact_email(self, value):
        return value.lower()

    def validate_origin_country(self, value):
        return _country_code(resolve_country_code(value))

    def validate_destination_country(self, value):
        return _country_code(resolve_country_code(value))


class PublicGuestQuoteSerializer(serializers.ModelSerializer):
    converted = serializers.BooleanField(source="is_converted", read_only=True)

    class Meta:
        model = GuestQuote
        fields = [
            "access_token", "contact_name", "origin_country", "destination_country", "cargo_type",
            "weight", "volume", "transport_mode", "priority", "estimated_cost", "currency",
            "estimated_delivery_days", "valid_until", "converted", "created_at",
        ]
        read_only_fields = fields


class GuestQuoteSerializer(serializers.ModelSerializer):
    """Staff view of a guest request, with the quote it became."""
    converted_quote_number = serializers.CharField(
        source="converted_quote.quote_number", read_only=True, allow_null=True
    )
    converted_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = GuestQuote
        exclude = ["access_token"]
        read_only_fields = [
            "contact_name", "contact_email", "contact_phone", "company_name",
            "origin_country", "destination_country", "cargo_type", "weight",
            "length", "width", "height", "volume", "transport_mode", "priority",
            "estimated_cost", "currency", "estimated_delivery_days", "valid_until",
            "message", "converted_quote", "converted_at", "created_at",
        ]


class GuestQuoteConvertSerializer(serializers.Serializer):
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all())
