from __future__ import annotations

from django.core.management.base import BaseCommand

from rostering.domain.models import TeamRole

TEAM_ROLES = [
    ("worship_lead", "Worship lead"),
    ("backup_vocals_1", "Backup vocals 1"),
    ("backup_vocals_2", "Backup vocals 2"),
    ("acoustic_guitar", "Acoustic guitar"),
    ("electric_guitar", "Electric guitar"),
    ("bass", "Bass"),
    ("keyboard", "Keyboard"),
    ("drums", "Drums"),
    ("percussion", "Percussion"),
    ("setup", "Setup"),
    ("sound", "Sound"),
]


class Command(BaseCommand):
    help = "Create/Sync the team roles used on the Sunday roster"

    def handle(self, *args, **kwargs):
        created = 0
        for order, (name, label) in enumerate(TEAM_ROLES, start=1):
            _, was_created = TeamRole.objects.update_or_create(
                name=name, defaults={"label": label, "sort_order": order}
            )
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"[TeamRole] created: {created}, total: {TeamRole.objects.count()}"))
        self.stdout.write(self.style.SUCCESS("Team roles created/updated."))
