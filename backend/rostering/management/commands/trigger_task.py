from __future__ import annotations

from typing import Optional
from django.core.management.base import BaseCommand, CommandError

from rostering.services.calendar import current_sunday
from rostering.services.clock import get_clock
from rostering.tasks import availability_reminder, notify_setlist_published


class Command(BaseCommand):
    help = (
        "Trigger Celery tasks by hand.\n"
        "Use --sync to run the task in this process (no broker needed)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "name",
            choices=["availability_reminder", "setlist_published"],
            help="Task to enqueue/run.",
        )
        parser.add_argument("--date", type=str, help="Sunday YYYY-MM-DD (setlist_published). Defaults to the current Sunday.")
        parser.add_argument(
            "--sync",
            action="store_true",
            help="Run the task synchronously (no broker/worker).",
        )

    def handle(self, *args, **opts):
        name: str = opts["name"]
        sync: bool = bool(opts.get("sync"))
        sunday: Optional[str] = opts.get("date") or current_sunday(get_clock().now()).isoformat()

        if name == "availability_reminder":
            task, task_args = availability_reminder, ()
        elif name == "setlist_published":
            task, task_args = notify_setlist_published, (sunday,)
        else:
            raise CommandError(f"Unknown task: {name}")

        if sync:
            result = task(*task_args)
            self.stdout.write(self.style.SUCCESS(f"[sync] {task.name} -> {result}"))
            return
        try:
            res = task.delay(*task_args)
        except Exception as e:
            raise CommandError(f"Failed to enqueue '{name}': {e}. Hint: use --sync to run without Celery.")
        self.stdout.write(self.style.SUCCESS(f"[async] enqueued {task.name}: {res.id}"))
