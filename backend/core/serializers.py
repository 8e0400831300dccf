from rest_framework import serializers

from .models import Country


class CountrySerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=2)

    class Meta:
        model = Country
        fields = ['id', 'code', 'name', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ('created_at', 'updated_at')

    def validate_code(self, value: str) -> str:
        """Normalize to upper-case and enforce uniqueness case-insensitively."""
        normalized = (value or '').strip().upper()
        if len(normalized) != 2 or not normalized.isalpha():
            raise serializers.ValidationError("Country code must be two letters (ISO 3166-1 alpha-2).")
        qs = Country.objects.filter(code=normalized)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError(f"Country with code '{normalized}' already exists.")
        return normalized

    def validate_name(self, value: str) -> str:
        value = (value or '').strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters.")
        return value
