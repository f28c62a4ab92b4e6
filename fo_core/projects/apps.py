# fo_core/projects/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fo_core.projects"

    def ready(self) -> None:
        from django.db.models.signals import post_save

        from fo_core.locations.models import Location
        from fo_core.projects.signals.location_auto_project import (
            auto_create_project_for_location,
        )

        post_save.connect(
            auto_create_project_for_location,
            sender=Location,
            dispatch_uid="projects.auto_create_project_for_location",
        )
