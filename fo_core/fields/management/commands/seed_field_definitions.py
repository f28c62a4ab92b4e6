# fo_core/fields/management/commands/seed_field_definitions.py

from django.core.management.base import BaseCommand

from fo_core.fields.registry import FieldRegistry


class Command(BaseCommand):
    help = "Sync the platform field catalog into FieldDefinition rows (idempotent)."

    def handle(self, *args, **options):
        result = FieldRegistry.sync()
        self.stdout.write(
            self.style.SUCCESS(
                f"Field definitions synced. Created: {result.created}, "
                f"updated: {result.updated}, deactivated: {result.deactivated}"
            )
        )
