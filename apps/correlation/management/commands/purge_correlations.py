"""
Management command to delete expired correlation records.

Expired records are already invisible to the bridge; this only reclaims the
rows. Run it from cron if the table grows.

Usage:
    python manage.py purge_correlations
    python manage.py purge_correlations --dry-run
"""

from django.core.management.base import BaseCommand

from apps.correlation.store import CorrelationStore


class Command(BaseCommand):
    help = "Delete correlation records whose retention window has passed"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many records would be deleted.",
        )

    def handle(self, *args, **options):
        store = CorrelationStore()

        if options["dry_run"]:
            count = store.expired().count()
            self.stdout.write(f"{count} expired correlation record(s) would be purged.")
            return

        deleted = store.purge_expired()
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} expired correlation record(s)."))
