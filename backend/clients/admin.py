from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "country", "client_type", "created_at")
    list_filter = ("client_type", "country")
    search_fields = ("name", "legal_name", "email", "tax_id")
