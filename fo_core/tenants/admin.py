# fo_core/tenants/admin.py
from django.contrib import admin

from fo_core.tenants.models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "status", "default_country", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "code")
    ordering = ("-created_at",)
    readonly_fields = ("id", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("id", "name", "code", "status", "default_country")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
