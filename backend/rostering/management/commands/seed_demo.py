from __future__ import annotations

import secrets

from django.core.management import call_command
from django.core.management.base import BaseCommand

from rostering.domain.models import AppRole, AvailabilityPeriod, ChordChart, Member, Song, TeamRole
from rostering.services.calendar import month_bounds, next_month
from rostering.services.clock import get_clock

DEFAULT_MEMBERS = [
    ("Alex Admin", "admin@example.com", AppRole.ADMIN, []),
    ("Casey Coordinator", "coordinator@example.com", AppRole.COORDINATOR, []),
    ("Morgan Music", "music@example.com", AppRole.MUSIC_COORDINATOR, ["keyboard"]),
    ("Wren Leader", "leader@example.com", AppRole.WORSHIP_LEADER, ["worship_lead", "acoustic_guitar"]),
    ("Sam Strings", "sam@example.com", AppRole.MUSICIAN, ["electric_guitar", "bass"]),
    ("Drew Drums", "drew@example.com", AppRole.MUSICIAN, ["drums", "percussion"]),
]

DEFAULT_SONGS = [
    ("Great Is Thy Faithfulness", "Thomas Chisholm", ["D", "Eb"]),
    ("Cornerstone", "Hillsong", ["C"]),
    ("Build My Life", "Pat Barrett", ["G", "A"]),
    ("Way Maker", "Sinach", ["E"]),
]

class Command(BaseCommand):
    help = "Seed demo data (team roles, members, songs and an open period for next month). Idempotent."

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-period",
            action="store_true",
            help="Do not open an availability period for next month.",
        )

    def handle(self, *args, **kwargs):
        call_command("seed_roles", stdout=self.stdout)
        roles = {r.name: r for r in TeamRole.objects.all()}

        created_members = 0
        for name, email, app_role, role_names in DEFAULT_MEMBERS:
            member, created = Member.objects.get_or_create(
                email=email,
                defaults={"name": name, "app_role": app_role, "magic_token": secrets.token_urlsafe(24)},
            )
            member.roles.set([roles[r] for r in role_names if r in roles])
            created_members += int(created)
        self.stdout.write(self.style.SUCCESS(f"Members created: {created_members}"))

        created_songs = 0
        for title, artist, keys in DEFAULT_SONGS:
            song, created = Song.objects.get_or_create(title=title, defaults={"artist": artist})
            if created:
                ChordChart.objects.bulk_create([ChordChart(song=song, key=k) for k in keys])
                created_songs += 1
        self.stdout.write(self.style.SUCCESS(f"Songs created: {created_songs}"))

        if kwargs.get("no_period"):
            return
        year, month = next_month(get_clock().today())
        start, end = month_bounds(year, month)
        period, created = AvailabilityPeriod.objects.get_or_create(
            starts_on=start, ends_on=end, defaults={"label": f"{start:%B %Y}"}
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f"Opened period {period}"))
        else:
            self.stdout.write(self.style.WARNING(f"Period {period} already exists."))
