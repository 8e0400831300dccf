from django.contrib import admin

from pickups.models import PickupLog, PickupRequest


class PickupLogInline(admin.TabularInline):
    model = PickupLog
    extra = 0
    readonly_fields = ("action", "old_status", "new_status", "notes", "metadata", "changed_by", "created_at")


@admin.register(PickupRequest)
class PickupRequestAdmin(admin.ModelAdmin):
    list_display = (
        "tracking_number",
        "contact_email",
        "pickup_city",
        "requested_date",
        "time_slot",
        "driver_name",
        "status",
    )
    list_filter = ("status", "time_slot", "cargo_type")
    search_fields = ("tracking_number", "contact_email", "contact_name", "pickup_city")
    readonly_fields = ("tracking_number", "tracking_token", "token_expires_at", "created_at", "updated_at")
    inlines = [PickupLogInline]
