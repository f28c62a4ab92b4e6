# fo_core/fields/admin.py
from __future__ import annotations

from django.contrib import admin

from fo_core.fields.models import CustomField, FieldConfig, FieldDefinition
from fo_core.fields.services import CustomFieldService


@admin.register(FieldDefinition)
class FieldDefinitionAdmin(admin.ModelAdmin):
    list_display = (
        "entity_type",
        "field_key",
        "field_label",
        "field_type",
        "category",
        "display_order",
        "is_platform_required",
        "is_client_configurable",
        "is_active",
    )
    list_filter = ("entity_type", "category", "is_active", "is_platform_required")
    search_fields = ("field_key", "field_label")
    ordering = ("entity_type", "display_order")

    # platform-owned: seeded by `manage.py seed_field_definitions`
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(FieldConfig)
class FieldConfigAdmin(admin.ModelAdmin):
    list_display = (
        "tenant_id",
        "entity_type",
        "field_definition_id",
        "is_required",
        "is_visible",
        "custom_label",
        "display_order",
        "updated_at",
    )
    list_filter = ("entity_type", "tenant_id")
    search_fields = ("custom_label",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(CustomField)
class CustomFieldAdmin(admin.ModelAdmin):
    list_display = (
        "tenant_id",
        "entity_type",
        "field_key",
        "field_label",
        "field_type",
        "is_required",
        "is_visible",
        "display_order",
        "is_active",
    )
    list_filter = ("entity_type", "field_type", "is_active", "tenant_id")
    search_fields = ("field_key", "field_label")
    readonly_fields = ("tenant_id", "entity_type", "field_key", "is_active", "retired_at", "created_at", "updated_at")
    actions = ["retire_selected"]

    fieldsets = (
        ("Scope", {"fields": ("tenant_id", "entity_type")}),
        ("Field", {"fields": ("field_key", "field_label", "field_type", "category", "options", "default_value")}),
        ("Form behaviour", {"fields": ("is_required", "is_visible", "display_order", "placeholder", "help_text")}),
        ("Validation", {"fields": ("validation_rules",)}),
        ("Lifecycle", {"fields": ("is_active", "retired_at", "created_at", "updated_at")}),
    )

    # keys are derived from the label by CustomFieldService.create; deleting
    # would free a key that stored values still use, so fields are retired instead
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Retire selected custom fields")
    def retire_selected(self, request, queryset):
        retired = 0
        for cf in queryset.filter(is_active=True):
            CustomFieldService.delete(tenant_id=cf.tenant_id, custom_field_id=cf.id)
            retired += 1
        self.message_user(request, f"Retired {retired} custom field(s).", fail_silently=True)
