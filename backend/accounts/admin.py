from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    model = CustomUser
    list_display = ['username', 'email', 'role', 'client', 'is_active']
    list_filter = ['role', 'is_active']
    search_fields = ['username', 'email', 'client__name']
    fieldsets = UserAdmin.fieldsets + (
        ('Back-office', {'fields': ('role', 'client', 'phone')}),
    )
