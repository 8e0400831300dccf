from django.contrib import admin, messages

from pricing.models import DisplayRate, PricingConfig, TransportRate
from pricing.services.pricing_config import config_to_dict, validate_pricing_config


@admin.register(PricingConfig)
class PricingConfigAdmin(admin.ModelAdmin):
    list_display = ("id", "default_rate_per_kg", "default_rate_per_m3", "is_active", "updated_by", "updated_at")
    list_filter = ("is_active",)
    readonly_fields = ("updated_at", "created_at")
    actions = ["validate_configs"]

    def validate_configs(self, request, queryset):
        for row in queryset:
            errors = validate_pricing_config(config_to_dict(row))
            if errors:
                for error in errors:
                    messages.warning(request, f"Config {row.id}: {error}")
            else:
                messages.info(request, f"Config {row.id} is valid.")

    validate_configs.short_description = "Validate selected pricing configurations"


@admin.register(TransportRate)
class TransportRateAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "origin_country_code",
        "destination_country_code",
        "transport_mode",
        "rate_per_kg",
        "rate_per_m3",
        "is_active",
    )
    list_filter = ("transport_mode", "is_active", "origin_country_code")
    search_fields = ("origin_country_code", "destination_country_code", "notes")


@admin.register(DisplayRate)
class DisplayRateAdmin(admin.ModelAdmin):
    list_display = ("currency", "rate", "as_of", "source")
    search_fields = ("currency",)
