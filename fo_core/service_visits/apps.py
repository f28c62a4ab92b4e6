# fo_core/service_visits/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ServiceVisitsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fo_core.service_visits"

    def ready(self) -> None:
        from django.db.models.signals import post_save

        from fo_core.projects.models import Project
        from fo_core.service_visits.signals.project_auto_service import (
            auto_create_service_for_project,
        )

        post_save.connect(
            auto_create_service_for_project,
            sender=Project,
            dispatch_uid="service_visits.auto_create_service_for_project",
        )
