from rest_framework import serializers

from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    country = serializers.CharField(max_length=2)

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'legal_name', 'tax_id', 'email', 'phone',
            'address', 'city', 'postal_code', 'country', 'website',
            'client_type', 'created_at', 'updated_at',
        ]
        read_only_fields = ('created_at', 'updated_at')

    def validate_country(self, value: str) -> str:
        normalized = (value or '').strip().upper()
        if len(normalized) != 2 or not normalized.isalpha():
            raise serializers.ValidationError("country must be an ISO 3166-1 alpha-2 code.")
        return normalized

    def validate_name(self, value: str) -> str:
        value = (value or '').strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters.")
        return value
