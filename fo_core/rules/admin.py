from __future__ import annotations

from typing import Any

from django import forms
from django.contrib import admin
from django.contrib.admin import widgets
from django.db import models
from rest_framework.exceptions import ValidationError

from fo_core.rules.models import AutoCreationRecord, AutoRule
from fo_core.rules.services import AutoRuleService


def _messages(detail: Any) -> list[str]:
    if isinstance(detail, dict):
        return [m for v in detail.values() for m in _messages(v)]
    if isinstance(detail, list):
        return [m for v in detail for m in _messages(v)]
    return [str(detail)]


class AutoRuleAdminForm(forms.ModelForm):
    """
    Admin writes pass the same checks AutoRuleService applies on save; the
    stored conditions and defaults are the normalized ones.
    """

    class Meta:
        model = AutoRule
        fields = "__all__"

    def clean(self):
        cleaned = super().clean()
        if any(f in self.errors for f in ("trigger_type", "target_type_id", "conditions", "defaults")):
            return cleaned

        trigger_type = cleaned.get("trigger_type")
        if not self.instance._state.adding and trigger_type != self.instance.trigger_type:
            self.add_error("trigger_type", "The trigger of a rule cannot be changed.")
            return cleaned

        try:
            cleaned.update(
                AutoRuleService.clean_definition(
                    trigger_type=trigger_type,
                    target_type_id=cleaned.get("target_type_id"),
                    conditions=cleaned.get("conditions"),
                    defaults=cleaned.get("defaults"),
                )
            )
        except ValidationError as exc:
            for field, detail in exc.detail.items():
                self.add_error(field, _messages(detail))
        return cleaned


@admin.register(AutoRule)
class AutoRuleAdmin(admin.ModelAdmin):
    form = AutoRuleAdminForm
    list_display = (
        "name",
        "trigger_type",
        "target_type_id",
        "priority",
        "is_active",
        "prevent_duplicates",
        "duplicate_scope",
        "tenant_id",
        "updated_at",
    )
    list_filter = ("trigger_type", "is_active", "duplicate_scope", "tenant_id")
    search_fields = ("name", "description", "target_type_id")
    ordering = ("tenant_id", "trigger_type", "priority", "created_at")
    readonly_fields = ("created_at", "updated_at")

    formfield_overrides = {
        models.JSONField: {"widget": widgets.AdminTextareaWidget(attrs={"rows": 14, "cols": 100})},
    }

    fieldsets = (
        ("Identity", {"fields": ("tenant_id", "trigger_type", "name", "description")}),
        ("Selection", {"fields": ("is_active", "priority", "conditions")}),
        ("Creates", {"fields": ("target_type_id", "defaults")}),
        ("Duplicates", {"fields": ("prevent_duplicates", "duplicate_scope")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(AutoCreationRecord)
class AutoCreationRecordAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "status",
        "trigger_type",
        "origin_id",
        "rule_id",
        "created_entity_id",
        "tenant_id",
    )
    list_filter = ("status", "trigger_type", "tenant_id")
    search_fields = ("origin_id", "rule_id", "created_entity_id", "error")
    ordering = ("-created_at",)
    readonly_fields = [f.name for f in AutoCreationRecord._meta.fields]

    def has_add_permission(self, request):
        return False
