from django.contrib import admin
from django.contrib.admin import widgets
from django.db import models

from fo_core.projects.models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = (
        "project_id",
        "name",
        "location",
        "project_type",
        "status",
        "priority",
        "billing_model",
        "sla_tier",
        "auto_rule_id",
        "created_at",
    )
    list_filter = ("status", "priority", "billing_model", "sla_tier", "tenant_id")
    search_fields = ("project_id", "name", "project_type")
    ordering = ("-created_at",)
    readonly_fields = ("id", "project_id", "auto_rule_id", "created_at", "updated_at")
    raw_id_fields = ("location",)

    formfield_overrides = {
        models.JSONField: {"widget": widgets.AdminTextareaWidget(attrs={"rows": 8, "cols": 100})},
    }

    fieldsets = (
        (None, {"fields": ("id", "tenant_id", "project_id", "name", "location", "description")}),
        ("Type", {"fields": ("project_type", "project_type_id", "step_id", "step_status_id")}),
        ("Operational", {"fields": ("status", "priority")}),
        ("Timeline", {"fields": ("start_date", "target_end_date")}),
        ("Financial", {"fields": ("billing_model", "sla_tier", "estimated_value", "currency")}),
        ("Other", {"fields": ("notes", "custom_values", "auto_rule_id")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
