from django.contrib import admin

from fo_core.locations.models import Location


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "client", "type", "status", "city", "country", "tenant_id")
    list_filter = ("type", "status", "country", "tenant_id")
    search_fields = ("code", "name", "client", "city")
    ordering = ("tenant_id", "code")
    readonly_fields = ("id", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("id", "tenant_id", "code", "name", "type", "status")}),
        ("Client", {"fields": ("client", "client_id")}),
        ("Address", {"fields": ("address_line1", "address_line2", "postal_code", "city", "state", "country")}),
        ("Other", {"fields": ("notes", "metadata")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
