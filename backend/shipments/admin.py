from django.contrib import admin

from shipments.models import Shipment, ShipmentLog


class ShipmentLogInline(admin.TabularInline):
    model = ShipmentLog
    extra = 0
    readonly_fields = ("old_status", "new_status", "location", "notes", "changed_by", "created_at")


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = (
        "tracking_number",
        "client",
        "origin_country",
        "destination_country",
        "status",
        "estimated_cost",
        "created_at",
    )
    list_filter = ("status", "cargo_type", "priority", "destination_country")
    search_fields = ("tracking_number", "client__name", "origin_city", "destination_city")
    readonly_fields = ("tracking_number", "created_at", "updated_at")
    inlines = [ShipmentLogInline]
