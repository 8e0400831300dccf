from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from .models import PickupLog, PickupRequest

PHONE_REGEX = r"^\+?[0-9][0-9 .-]{5,18}$"


class PickupLogSerializer(serializers.ModelSerializer):
    changed_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = PickupLog
        fields = ["id", "action", "old_status", "new_status", "notes", "metadata", "changed_by", "created_at"]
        read_only_fields = fields


class PickupRequestSerializer(serializers.ModelSerializer):
    """Full pickup representation for authenticated users."""
    client_name = serializers.CharField(source="client.name", read_only=True)
    contact_phone = serializers.RegexField(PHONE_REGEX, max_length=20)
    pickup_country = serializers.CharField(max_length=2, required=False, default="FR")
    estimated_weight = serializers.DecimalField(
        max_digits=12, decimal_places=3, required=False, allow_null=True,
        min_value=Decimal("0.001"), max_value=Decimal("100000"),
    )
    estimated_volume = serializers.DecimalField(
        max_digits=12, decimal_places=3, required=False, allow_null=True,
        min_value=Decimal("0.001"), max_value=Decimal("1000"),
    )
    package_count = serializers.IntegerField(required=False, min_value=1, max_value=10000)

    class Meta:
        model = PickupRequest
        fields = [
            "id", "tracking_number", "client", "client_name", "user",
            "contact_name", "contact_email", "contact_phone",
            "pickup_address", "pickup_city", "pickup_postal_code", "pickup_country",
            "requested_date", "time_slot", "scheduled_date",
            "cargo_type", "estimated_weight", "estimated_volume", "package_count",
            "description", "special_instructions", "access_instructions",
            "driver_name", "driver_phone", "status", "cancellation_reason",
            "completion_notes", "actual_pickup_date", "created_at", "updated_at",
        ]
        read_only_fields = (
            "tracking_number", "user", "scheduled_date", "driver_name", "driver_phone",
            "status", "cancellation_reason", "completion_notes", "actual_pickup_date",
            "created_at", "updated_at",
        )

    def validate_pickup_country(self, value):
        code = (value or "").strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise serializers.ValidationError("Country code must be two letters (ISO 3166-1 alpha-2).")
        return code

    def validate_contact_email(self, value):
        return value.strip().lower()

    def validate_contact_phone(self, value):
        return "".join(ch for ch in value if ch not in " .-")

    def validate_requested_date(self, value):
        if value <= timezone.now():
            raise serializers.ValidationError("The requested date must be in the future.")
        return value


class GuestPickupSerializer(PickupRequestSerializer):
    class Meta(PickupRequestSerializer.Meta):
        read_only_fields = PickupRequestSerializer.Meta.read_only_fields + ("client",)


class PublicPickupSerializer(serializers.ModelSerializer):
    """What a guest sees through the tracking token: no contacts, no account links."""
    history = serializers.SerializerMethodField()

    class Meta:
        model = PickupRequest
        fields = [
            "tracking_number", "status", "pickup_city", "pickup_postal_code", "pickup_country",
            "requested_date", "time_slot", "scheduled_date", "cargo_type", "package_count",
            "driver_name", "actual_pickup_date", "token_expires_at", "history",
        ]
        read_only_fields = fields

    def get_history(self, obj):
        return [
            {"action": log.action, "new_status": log.new_status, "created_at": log.created_at}
            for log in obj.logs.all()
        ]


class PickupStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[value for value, _ in PickupRequest.STATUS_CHOICES])
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    completion_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    actual_pickup_date = serializers.DateTimeField(required=False, allow_null=True)


class PickupCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=500)


class AssignDriverSerializer(serializers.Serializer):
    driver_name = serializers.CharField(min_length=2, max_length=100)
    driver_phone = serializers.RegexField(PHONE_REGEX, max_length=20, required=False, allow_null=True)


class SchedulePickupSerializer(serializers.Serializer):
    scheduled_date = serializers.DateTimeField()
    time_slot = serializers.ChoiceField(choices=PickupRequest.TIME_SLOT_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
