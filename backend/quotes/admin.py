from django.contrib import admin, messages

from quotes.models import GuestQuote, Quote, QuoteLog, QuotePackage
from quotes.services import expire_overdue_quotes


class QuotePackageInline(admin.TabularInline):
    model = QuotePackage
    extra = 0


class QuoteLogInline(admin.TabularInline):
    model = QuoteLog
    extra = 0
    readonly_fields = ("action", "old_status", "new_status", "notes", "changed_by", "created_at")


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = (
        "quote_number",
        "client",
        "origin_country",
        "destination_country",
        "estimated_cost",
        "currency",
        "status",
        "valid_until",
    )
    list_filter = ("status", "cargo_type", "priority")
    search_fields = ("quote_number", "client__name")
    readonly_fields = ("quote_number", "estimated_cost", "created_at", "updated_at")
    inlines = [QuotePackageInline, QuoteLogInline]
    actions = ["expire_overdue"]

    def expire_overdue(self, request, queryset):
        count = expire_overdue_quotes()
        messages.info(request, f"{count} quote(s) expired.")

    expire_overdue.short_description = "Expire all overdue draft/sent quotes"


@admin.register(GuestQuote)
class GuestQuoteAdmin(admin.ModelAdmin):
    list_display = (
        "contact_email",
        "company_name",
        "origin_country",
        "destination_country",
        "estimated_cost",
        "converted_quote",
        "created_at",
    )
    list_filter = ("cargo_type", "priority")
    search_fields = ("contact_name", "contact_email", "company_name")
    readonly_fields = ("access_token", "estimated_cost", "converted_quote", "converted_at", "converted_by", "created_at")
