from django.contrib import admin

from fo_core.service_visits.models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = (
        "service_id",
        "title",
        "project",
        "location",
        "urgency",
        "status",
        "scheduled_date",
        "auto_rule_id",
    )
    list_filter = ("status", "urgency", "tenant_id")
    search_fields = ("service_id", "title", "reference_number")
    ordering = ("-created_at",)
    readonly_fields = ("id", "service_id", "location", "auto_rule_id", "created_at", "updated_at")
    raw_id_fields = ("project",)
